"""
Platform schemas.

Wire models for the platform services the receipt engine reads from:
storage (instances, data elements), register (parties), profile (user
profiles) and application text resources.

Records are immutable once parsed. Unknown fields are preserved so the
renderer receives the platform records unchanged.
"""

from __future__ import annotations

from typing import Optional, Tuple
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from receipt.app.errors import InvalidInstanceReferenceError


_PLATFORM_CONFIG = ConfigDict(populate_by_name=True, extra="allow", frozen=True)


# ----------------------------------------------------------------------
# Storage
# ----------------------------------------------------------------------

class InstanceOwner(BaseModel):
    party_id: str = Field(..., alias="partyId")
    person_number: Optional[str] = Field(None, alias="personNumber")
    organisation_number: Optional[str] = Field(None, alias="organisationNumber")

    model_config = _PLATFORM_CONFIG


class DataElement(BaseModel):
    id: str
    data_type: str = Field(..., alias="dataType")
    content_type: Optional[str] = Field(None, alias="contentType")
    filename: Optional[str] = None

    model_config = _PLATFORM_CONFIG


class Instance(BaseModel):
    """
    A process instance.

    ``id`` has the form ``"<instanceOwnerPartyId>/<instanceGuid>"`` and
    ``app_id`` the form ``"<org>/<app>"``.
    """

    id: str
    app_id: str = Field(..., alias="appId")
    org: str
    instance_owner: InstanceOwner = Field(..., alias="instanceOwner")
    data: Tuple[DataElement, ...] = ()

    model_config = _PLATFORM_CONFIG


class InstanceReference(BaseModel):
    """Decomposed instance identifier."""

    org: str
    app: str
    instance_owner_party_id: int
    instance_guid: UUID

    model_config = ConfigDict(frozen=True)

    @property
    def instance_id(self) -> str:
        return f"{self.instance_owner_party_id}/{self.instance_guid}"

    @classmethod
    def from_instance(cls, instance: Instance) -> "InstanceReference":
        """
        Decompose an instance's composite identifiers.

        Raises InvalidInstanceReferenceError if either identifier does
        not split into exactly two non-empty parts, the owner part is
        not a numeric party id, or the instance part is not a GUID.
        """
        app_parts = instance.app_id.split("/")
        if len(app_parts) != 2 or not all(app_parts):
            raise InvalidInstanceReferenceError(
                f"Application id '{instance.app_id}' is not of the form "
                "'<org>/<app>'"
            )

        id_parts = instance.id.split("/")
        if len(id_parts) != 2 or not all(id_parts):
            raise InvalidInstanceReferenceError(
                f"Instance id '{instance.id}' is not of the form "
                "'<instanceOwnerPartyId>/<instanceGuid>'"
            )

        try:
            owner_party_id = int(instance.instance_owner.party_id)
        except ValueError as exc:
            raise InvalidInstanceReferenceError(
                "Instance owner party id "
                f"'{instance.instance_owner.party_id}' is not numeric"
            ) from exc

        try:
            instance_guid = UUID(id_parts[1])
        except ValueError as exc:
            raise InvalidInstanceReferenceError(
                f"Instance guid '{id_parts[1]}' is not a valid GUID"
            ) from exc

        return cls(
            org=instance.org,
            app=app_parts[1],
            instance_owner_party_id=owner_party_id,
            instance_guid=instance_guid,
        )


# ----------------------------------------------------------------------
# Register
# ----------------------------------------------------------------------

class Person(BaseModel):
    ssn: Optional[str] = None
    name: Optional[str] = None

    model_config = _PLATFORM_CONFIG


class Organization(BaseModel):
    org_number: Optional[str] = Field(None, alias="orgNumber")
    name: Optional[str] = None

    model_config = _PLATFORM_CONFIG


class Party(BaseModel):
    party_id: int = Field(..., alias="partyId")
    party_type_name: Optional[str] = Field(None, alias="partyTypeName")
    org_number: Optional[str] = Field(None, alias="orgNumber")
    ssn: Optional[str] = None
    name: Optional[str] = None
    person: Optional[Person] = None
    organization: Optional[Organization] = None

    model_config = _PLATFORM_CONFIG


# ----------------------------------------------------------------------
# Profile
# ----------------------------------------------------------------------

class ProfileSettingPreference(BaseModel):
    language: Optional[str] = None

    model_config = _PLATFORM_CONFIG


class UserProfile(BaseModel):
    user_id: int = Field(..., alias="userId")
    user_name: Optional[str] = Field(None, alias="userName")
    party_id: Optional[int] = Field(None, alias="partyId")
    party: Optional[Party] = None
    profile_setting_preference: Optional[ProfileSettingPreference] = Field(
        None,
        alias="profileSettingPreference",
    )

    model_config = _PLATFORM_CONFIG

    @property
    def preferred_language(self) -> Optional[str]:
        if self.profile_setting_preference is None:
            return None
        return self.profile_setting_preference.language or None


# ----------------------------------------------------------------------
# Principal
# ----------------------------------------------------------------------

class Principal(BaseModel):
    """
    The caller on whose behalf a receipt is generated.

    Exactly one of ``user_id`` (an authenticated person) or
    ``org_number`` (an authenticated organization) is set.
    """

    user_id: Optional[int] = None
    org_number: Optional[str] = None

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="after")
    def exactly_one_identity(self) -> "Principal":
        if (self.user_id is None) == (self.org_number is None):
            raise ValueError(
                "Principal requires exactly one of user_id or org_number"
            )
        return self

    @property
    def is_person(self) -> bool:
        return self.user_id is not None


# ----------------------------------------------------------------------
# Text resources
# ----------------------------------------------------------------------

class TextResourceElement(BaseModel):
    id: str
    value: str = ""

    model_config = _PLATFORM_CONFIG


class TextResource(BaseModel):
    id: Optional[str] = None
    org: Optional[str] = None
    language: str
    resources: Tuple[TextResourceElement, ...] = ()

    model_config = _PLATFORM_CONFIG

    def find(self, resource_id: str) -> Optional[TextResourceElement]:
        for element in self.resources:
            if element.id == resource_id:
                return element
        return None
