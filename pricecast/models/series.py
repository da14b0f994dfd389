"""Price series input models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class ForecastInput(BaseModel):
    """Everything the fusion engine needs for one asset and one refresh.

    Series are time-ascending. Highs and lows are optional; when omitted the
    closes stand in for both (true range then degrades to close-to-close
    moves). Field names also accept their camelCase aliases
    (``currentPrice``, ``hourlyCloses``...).
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    asset_id: str
    current_price: float = Field(gt=0)
    hourly_closes: list[float]
    hourly_highs: list[float] = Field(default_factory=list)
    hourly_lows: list[float] = Field(default_factory=list)
    daily_closes: list[float] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_lengths(self):
        n = len(self.hourly_closes)
        for name in ("hourly_highs", "hourly_lows"):
            values = getattr(self, name)
            if values and len(values) != n:
                raise ValueError(
                    f"{name} has {len(values)} points, expected {n} to match hourly_closes"
                )
        return self

    @property
    def highs(self) -> list[float]:
        """Hourly highs, falling back to closes."""
        return self.hourly_highs or self.hourly_closes

    @property
    def lows(self) -> list[float]:
        """Hourly lows, falling back to closes."""
        return self.hourly_lows or self.hourly_closes
