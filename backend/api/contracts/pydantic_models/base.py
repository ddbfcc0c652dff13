"""
Base Pydantic model for all API param schemas.

Key features:
- frozen=True: Immutable after normalization (prevents downstream mutation)
- populate_by_name=True: Accept both alias and field name
- extra='ignore': Ignore undeclared fields (safe)
- sale_type normalized to its canonical label at boundary
"""

from pydantic import BaseModel, ConfigDict, field_validator

from constants import FILTER_ALL, normalize_sale_type


class BaseParamsModel(BaseModel):
    """
    Base model for all API param schemas.

    All param models inherit from this to ensure consistent behavior:
    - Frozen after creation (immutable)
    - Whitespace stripped from strings
    - Both alias and field name accepted
    - Unknown fields ignored
    - sale_type normalized at boundary ('resale' -> 'Resale', 'all' -> None)

    Invariant: after validation, sale_type is a canonical label
    ("New Sale", "Resale", "Sub Sale") or None.
    """
    model_config = ConfigDict(
        frozen=True,  # Immutable after normalization
        str_strip_whitespace=True,  # Strip whitespace from strings
        populate_by_name=True,  # Accept both alias and field name
        extra='ignore',  # Ignore undeclared fields
    )

    @field_validator('sale_type', mode='before', check_fields=False)
    @classmethod
    def normalize_sale_type_label(cls, v):
        """Normalize sale_type at validation boundary.

        Accepts: 'new_sale', 'resale', 'sub_sale', URA codes, 'all', or canonical labels.
        Returns: canonical label or None. Unknown values pass through unchanged.
        """
        if v is None:
            return None
        if isinstance(v, str):
            key = v.strip()
            if key == '' or key.lower() == FILTER_ALL:
                return None
            return normalize_sale_type(key) or key
        return v
