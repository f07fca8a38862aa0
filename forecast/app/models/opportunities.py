"""
Sales Forecast Opportunity Models
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Dict, List, Optional
import uuid

from sqlalchemy import Column, String, Numeric, DateTime, Text, Integer, Date, CheckConstraint, Uuid
from sqlalchemy.sql import func

from ..core.database import Base


@dataclass(frozen=True)
class StageInfo:
    """Static attributes of a pipeline stage"""
    order: int
    label: str
    color: str
    probability: int


class OpportunityStage(str, Enum):
    """Opportunity stage enumeration, in pipeline order"""
    NEW = "new"
    QUALIFICATION = "qualification"
    PROPOSAL_SENT = "proposal_sent"
    NEGOTIATION = "negotiation"
    CONVERTED = "converted"
    LOST = "lost"

    @property
    def info(self) -> StageInfo:
        return STAGE_TAXONOMY[self]

    @property
    def label(self) -> str:
        return self.info.label

    @property
    def color(self) -> str:
        return self.info.color

    @property
    def probability(self) -> int:
        """Default closing probability for the stage"""
        return self.info.probability

    @property
    def is_final(self) -> bool:
        return self in (OpportunityStage.CONVERTED, OpportunityStage.LOST)

    @property
    def is_open(self) -> bool:
        return not self.is_final

    @property
    def next_stage(self) -> Optional["OpportunityStage"]:
        """Following stage in the progression, None for terminal stages"""
        progression = self.progression()
        if self not in progression or self is progression[-1]:
            return None
        return progression[progression.index(self) + 1]

    @classmethod
    def ordered(cls) -> List["OpportunityStage"]:
        return sorted(cls, key=lambda stage: stage.info.order)

    @classmethod
    def open_stages(cls) -> List["OpportunityStage"]:
        return [stage for stage in cls.ordered() if stage.is_open]

    @classmethod
    def closed_stages(cls) -> List["OpportunityStage"]:
        return [stage for stage in cls.ordered() if stage.is_final]

    @classmethod
    def progression(cls) -> List["OpportunityStage"]:
        """Open stages followed by the winning stage; losing is off the path"""
        return cls.open_stages() + [cls.CONVERTED]

    @classmethod
    def values(cls) -> List[str]:
        return [stage.value for stage in cls]

    @classmethod
    def labels(cls) -> Dict[str, str]:
        return {stage.value: stage.label for stage in cls}

    @classmethod
    def options(cls) -> List[Dict[str, object]]:
        return [
            {
                "value": stage.value,
                "label": stage.label,
                "color": stage.color,
                "probability": stage.probability,
                "is_final": stage.is_final,
            }
            for stage in cls
        ]

    @classmethod
    def label_for(cls, value: Optional[str]) -> str:
        """Label of a stored stage value, humanised when it is not a known stage"""
        try:
            return cls(value).label
        except ValueError:
            return (value or "").replace("_", " ").capitalize()


STAGE_TAXONOMY: Dict[OpportunityStage, StageInfo] = {
    OpportunityStage.NEW: StageInfo(order=0, label="New", color="blue", probability=10),
    OpportunityStage.QUALIFICATION: StageInfo(order=1, label="Qualification", color="yellow", probability=25),
    OpportunityStage.PROPOSAL_SENT: StageInfo(order=2, label="Proposal sent", color="purple", probability=50),
    OpportunityStage.NEGOTIATION: StageInfo(order=3, label="Negotiation", color="orange", probability=75),
    OpportunityStage.CONVERTED: StageInfo(order=4, label="Converted", color="green", probability=100),
    OpportunityStage.LOST: StageInfo(order=5, label="Lost", color="red", probability=0),
}

CLOSED_STAGE_VALUES = [stage.value for stage in OpportunityStage.closed_stages()]


class Opportunity(Base):
    """Opportunity model for tracking sales pipeline entries"""
    __tablename__ = "opportunities"
    __table_args__ = (
        CheckConstraint("probability >= 0 AND probability <= 100", name="ck_opportunities_probability"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    amount = Column(Numeric(12, 2), nullable=False, default=0)
    currency = Column(String(3), default="EUR")
    probability = Column(Integer, nullable=False, default=10)
    stage = Column(String(50), nullable=False, default=OpportunityStage.NEW.value, index=True)
    expected_close_date = Column(Date, index=True)
    actual_close_date = Column(Date)
    user_id = Column(Uuid, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def is_won(self) -> bool:
        """Check if opportunity is won"""
        return self.stage == OpportunityStage.CONVERTED.value

    @property
    def is_lost(self) -> bool:
        """Check if opportunity is lost"""
        return self.stage == OpportunityStage.LOST.value

    @property
    def is_closed(self) -> bool:
        """Check if opportunity is closed (won or lost)"""
        return self.is_won or self.is_lost

    @property
    def amount_value(self) -> float:
        return float(self.amount) if self.amount is not None else 0.0

    @property
    def weighted_amount(self) -> float:
        """Calculate weighted amount based on probability"""
        return self.amount_value * ((self.probability or 0) / 100)

    @property
    def stage_label(self) -> str:
        return OpportunityStage.label_for(self.stage)

    def days_until_close(self, today: date) -> Optional[int]:
        """Signed number of days until the expected close date"""
        if not self.expected_close_date:
            return None
        return (self.expected_close_date - today).days

    def is_overdue(self, today: date) -> bool:
        """Open opportunity whose expected close date has passed"""
        if not self.expected_close_date or self.is_closed:
            return False
        return today > self.expected_close_date

    def __repr__(self):
        return f"<Opportunity(name='{self.name}', stage='{self.stage}', amount={self.amount})>"
