"""Models describing externally imported modules."""

from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from code_variants.models.enums import ImportKind


class ExternalImport(BaseModel):
    """A single symbol imported from an external module."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    name: str
    type: ImportKind
    is_type: Optional[bool] = None


# Module name -> ordered list of imported symbols
Externals = dict[str, list[ExternalImport]]
