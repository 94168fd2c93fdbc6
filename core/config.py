"""Queue engine configuration."""

from decimal import Decimal

from pydantic import BaseModel, Field, model_validator


class QueueSettings(BaseModel):
    """
    Queue admission and pricing configuration.

    Scores rank customers at admission: higher scores are served first,
    ties keep arrival order. Money amounts are integer cents.
    """

    # Priority scores
    vip_score: int = Field(
        default=2,
        description="Priority score of a VIP customer",
        ge=0,
        le=10,
    )
    emergency_score: int = Field(
        default=2,
        description="Priority score of an emergency booking",
        ge=0,
        le=10,
    )
    regular_score: int = Field(
        default=1,
        description="Priority score of a regular customer",
        ge=0,
        le=10,
    )

    # Paid priority
    payment_required_min_score: int = Field(
        default=1,
        description="Bookings at or above this score must pay online (pay_now)",
        ge=1,
    )
    surcharge_min_score: int = Field(
        default=2,
        description="Bookings at or above this score pay the priority surcharge",
        ge=1,
    )
    priority_surcharge_rate: Decimal = Field(
        default=Decimal("1.5"),
        description="Surcharge as a fraction of the base price (1.5 = +150%)",
        ge=0,
    )

    # Reads
    snapshot_ttl_seconds: int = Field(
        default=5,
        description="How long a cached active-queue snapshot stays valid",
        ge=1,
        le=300,
    )
    history_limit: int = Field(
        default=100,
        description="Default number of entries returned by history listings",
        ge=1,
        le=1000,
    )

    @model_validator(mode="after")
    def validate_thresholds(self) -> "QueueSettings":
        """Anyone who pays the surcharge must also pay online."""
        if self.surcharge_min_score < self.payment_required_min_score:
            raise ValueError(
                "surcharge_min_score cannot be below payment_required_min_score"
            )
        return self
