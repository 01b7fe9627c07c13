"""
Pydantic models for vCard records.

A decoded contact is held as a ContactRecord: an ordered list of property
occurrences, where composite properties (N, ADR) are structured variants
instead of dotted string keys. The flat ``PROP[INDEX:TYPE].SUBFIELD``
mapping used by hosts is produced by ``to_flat()`` and read back by
``from_flat()``.
"""

import logging
from enum import Enum
from typing import Optional, List, Dict, Any, Union, Literal, Tuple, Mapping, ClassVar, Annotated

from pydantic import BaseModel, ConfigDict, Field

from .keys import FieldKey, parse_key, next_free_index

logger = logging.getLogger(__name__)


class VCardSupportedKey(str, Enum):
    """vCard properties kept by the codec, with human-readable descriptions."""
    VERSION = "vCard Version"
    N = "Name"
    FN = "Full Name"
    NICKNAME = "Nickname"
    ADR = "Address"
    ADR_LABEL = "Address Label"
    AGENT = "Agent (Representative)"
    ANNIVERSARY = "Anniversary Date"
    BDAY = "Birthday Date"
    CATEGORIES = "Categories (Tags)"
    CLASS = "Classification (Privacy Level)"
    EMAIL = "Email Address"
    GENDER = "Gender"
    GEO = "Geolocation (Latitude/Longitude)"
    KIND = "Contact Type"
    LANG = "Language Spoken"
    MEMBER = "Group Member"
    NAME = "Name Identifier"
    NOTE = "Notes"
    ORG = "Organization Name"
    PHOTO = "Profile Photo"
    REV = "Last Updated Timestamp"
    ROLE = "Job Role or Title"
    SOURCE = "vCard Source URL"
    TEL = "Telephone Number"
    TITLE = "Job Title"
    TZ = "Time Zone"
    UID = "Unique Identifier"
    URL = "Website URL"
    SOCIALPROFILE = "Social Profile"
    RELATED = "Related Contact"

    @classmethod
    def is_supported(cls, name: str) -> bool:
        return name in cls.__members__


class VCardKind(str, Enum):
    """vCard KIND values."""
    INDIVIDUAL = "individual"
    ORGANIZATION = "org"
    GROUP = "group"
    LOCATION = "location"


# Subfield order of the composite properties, as stored in the record format.
# For N, "FN" is the family-name component, not the FN property.
STRUCTURED_FIELDS: Dict[str, Tuple[str, ...]] = {
    "N": ("FN", "GN", "MN", "PREFIX", "SUFFIX"),
    "ADR": ("PO", "EXT", "STREET", "LOCALITY", "REGION", "POSTAL", "COUNTRY"),
}

DATE_PROPERTIES = ("BDAY", "ANNIVERSARY")


# ==================== Occurrences ====================

class ScalarField(BaseModel):
    """A single-valued property such as EMAIL, TEL or RELATED."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["scalar"] = "scalar"
    property: str
    type: Optional[str] = None
    value: str

    def field_keys(self) -> List[FieldKey]:
        return [FieldKey(base=self.property, type=self.type)]

    def flat_items(self, index: Optional[int] = None) -> List[Tuple[str, str]]:
        key = FieldKey(base=self.property, type=self.type).with_index(index)
        return [(str(key), self.value)]


class _Composite(BaseModel):
    """Shared behaviour for structured properties."""
    model_config = ConfigDict(frozen=True)

    property: ClassVar[str]
    # subfield name -> attribute name
    components: ClassVar[Dict[str, str]]

    type: Optional[str] = None

    @classmethod
    def from_components(cls, type: Optional[str], values: Mapping[str, str]):
        data = {cls.components[sub]: v for sub, v in values.items() if sub in cls.components}
        return cls(type=type, **data)

    def subfield_values(self) -> List[Tuple[str, str]]:
        """Present subfields in schema order."""
        items = []
        for sub in STRUCTURED_FIELDS[self.property]:
            value = getattr(self, self.components[sub])
            if value:
                items.append((sub, value))
        return items

    def field_keys(self) -> List[FieldKey]:
        return [
            FieldKey(base=self.property, type=self.type, subfield=sub)
            for sub, _ in self.subfield_values()
        ]

    def flat_items(self, index: Optional[int] = None) -> List[Tuple[str, str]]:
        return [
            (str(FieldKey(base=self.property, type=self.type, subfield=sub).with_index(index)), value)
            for sub, value in self.subfield_values()
        ]

    def render_value(self) -> str:
        """Semicolon-joined components; missing ones render empty."""
        return ";".join(
            getattr(self, self.components[sub]) or ""
            for sub in STRUCTURED_FIELDS[self.property]
        )


class NameComponents(_Composite):
    """The N property: family; given; middle; prefix; suffix."""
    property: ClassVar[str] = "N"
    components: ClassVar[Dict[str, str]] = {
        "FN": "family",
        "GN": "given",
        "MN": "middle",
        "PREFIX": "prefix",
        "SUFFIX": "suffix",
    }

    kind: Literal["name"] = "name"
    family: Optional[str] = None
    given: Optional[str] = None
    middle: Optional[str] = None
    prefix: Optional[str] = None
    suffix: Optional[str] = None


class AddressComponents(_Composite):
    """The ADR property."""
    property: ClassVar[str] = "ADR"
    components: ClassVar[Dict[str, str]] = {
        "PO": "po_box",
        "EXT": "extended",
        "STREET": "street",
        "LOCALITY": "locality",
        "REGION": "region",
        "POSTAL": "postal_code",
        "COUNTRY": "country",
    }

    kind: Literal["address"] = "address"
    po_box: Optional[str] = None
    extended: Optional[str] = None
    street: Optional[str] = None
    locality: Optional[str] = None
    region: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None


PropertyValue = Annotated[
    Union[ScalarField, NameComponents, AddressComponents],
    Field(discriminator="kind"),
]

COMPOSITE_TYPES = {
    "N": NameComponents,
    "ADR": AddressComponents,
}


def is_composite(property_name: str) -> bool:
    return property_name in COMPOSITE_TYPES


# ==================== Record ====================

class ContactRecord(BaseModel):
    """
    One contact as an ordered list of property occurrences.

    Records are immutable; ``with_occurrence`` returns a new record.
    Repeated properties are kept as separate occurrences and only receive
    bracket indexes when flattened.
    """
    model_config = ConfigDict(frozen=True)

    occurrences: Tuple[PropertyValue, ...] = Field(default_factory=tuple)

    def with_occurrence(self, occurrence: PropertyValue) -> "ContactRecord":
        return ContactRecord(occurrences=self.occurrences + (occurrence,))

    def get(self, property_name: str) -> List[PropertyValue]:
        """All occurrences of a property, in input order."""
        return [
            occ for occ in self.occurrences
            if occ.property == property_name
        ]

    def first_value(self, property_name: str) -> Optional[str]:
        for occ in self.get(property_name):
            if isinstance(occ, ScalarField):
                return occ.value
        return None

    def to_flat(self) -> Dict[str, str]:
        """
        Flatten to Field Keys.

        The first occurrence of a key stays unindexed. A later occurrence
        whose keys collide gets the smallest free index, shared by all of its
        subfields.
        """
        flat: Dict[str, str] = {}
        for occ in self.occurrences:
            index = next_free_index(occ.field_keys(), flat)
            if index is not None:
                logger.debug(f"Indexing repeated {occ.property} occurrence as [{index}:]")
            for key, value in occ.flat_items(index):
                flat[key] = value
        return flat

    @classmethod
    def from_flat(cls, record: Mapping[str, Any]) -> "ContactRecord":
        """
        Regroup a flat record into occurrences.

        Composite subfields sharing one ``PROP[INDEX:TYPE]`` prefix form one
        occurrence. Values must already be strings.
        """
        occurrences: List[Any] = []
        composite_slots: Dict[Tuple[str, Optional[str], Optional[str]], int] = {}
        composite_values: Dict[int, Dict[str, str]] = {}

        for key, value in record.items():
            parsed = parse_key(key)
            if parsed.base in COMPOSITE_TYPES and parsed.subfield:
                group = (parsed.base, parsed.index, parsed.type)
                if group not in composite_slots:
                    composite_slots[group] = len(occurrences)
                    occurrences.append(group)
                    composite_values[composite_slots[group]] = {}
                composite_values[composite_slots[group]][parsed.subfield] = value
            else:
                if parsed.subfield:
                    logger.debug(f"Dropping subfield of non-composite key {key}")
                occurrences.append(
                    ScalarField(property=parsed.base, type=parsed.type, value=value)
                )

        for slot, values in composite_values.items():
            base, _, type_ = occurrences[slot]
            occurrences[slot] = COMPOSITE_TYPES[base].from_components(type_, values)

        return cls(occurrences=tuple(occurrences))


# ==================== Batch encode results ====================

class VCardToStringError(BaseModel):
    """One failed contact in a batch encode."""
    status: str = "error"
    name: str
    message: str


class VCardToStringReply(BaseModel):
    """Joined vCard text plus the per-contact failures."""
    vcards: str = ""
    errors: List[VCardToStringError] = Field(default_factory=list)

    @property
    def success_count(self) -> int:
        return self.vcards.count("BEGIN:VCARD")
