"""
Rate Catalog Item.

A rate record as stored in the rate catalog: a short reference string
(typically an ITP number), a description, a unit and a base rate with an
optional overtime rate.

Author: ML Engineering Team
"""

from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Optional

from template_studio.binding.formatting import coerce_number


@dataclass(frozen=True)
class RateItem:
    """
    One catalog rate.

    Attributes:
        reference_no: Reference string, unique within a catalog.
        description: Service description, matched against line descriptions.
        unit: Billing unit, e.g. "Day" or "Hour".
        rate: Base rate.
        ot_rate: Overtime rate; 0 or None means "no overtime rate".
        currency: Currency code.
        id: Store id, None until inserted.
    """
    reference_no: str
    description: str = ''
    unit: str = ''
    rate: float = 0.0
    ot_rate: Optional[float] = None
    currency: str = 'USD'
    id: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'reference_no', str(self.reference_no or '').strip())
        object.__setattr__(self, 'rate', coerce_number(self.rate))
        if self.ot_rate is not None:
            object.__setattr__(self, 'ot_rate', coerce_number(self.ot_rate))

    @property
    def has_overtime_rate(self) -> bool:
        return bool(self.ot_rate and self.ot_rate > 0)

    def with_id(self, rate_id: Optional[str]) -> 'RateItem':
        return replace(self, id=rate_id)

    def to_dict(self) -> Dict[str, Any]:
        """Row form with the persisted snake_case keys; id omitted when unset."""
        data = asdict(self)
        if data['id'] is None:
            del data['id']
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RateItem':
        return cls(
            reference_no=data.get('reference_no') or data.get('referenceNo') or '',
            description=data.get('description') or '',
            unit=data.get('unit') or '',
            rate=data.get('rate', 0),
            ot_rate=data.get('ot_rate', data.get('otRate')),
            currency=data.get('currency') or 'USD',
            id=data.get('id'),
        )
