"""Framework aggregate: a compliance framework such as SOC 2, ISO 27001 or HIPAA.

Controls reference a framework by id; the framework does not own them.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Union

from .entity import Entity, EntityState, as_utc, check_length, is_blank, utcnow
from .result import Result, validation_error
from .values import FrameworkName, FrameworkVersion

DESCRIPTION_MAX = 2000
WEBSITE_MAX = 255
CATEGORY_MAX = 100
ORGANIZATION_MAX = 255


class FrameworkState(EntityState):
    name: FrameworkName
    version: FrameworkVersion
    description: str
    organization: Optional[str] = None
    category: Optional[str] = None
    website: Optional[str] = None


class Framework(Entity[FrameworkState]):
    state_model = FrameworkState

    @classmethod
    def create(
        cls,
        name: Union[FrameworkName, str],
        version: Union[FrameworkVersion, str],
        description: str,
        is_active: bool = True,
        organization: Optional[str] = None,
        category: Optional[str] = None,
        website: Optional[str] = None,
        created_by: Optional[str] = None,
        created_at: Optional[datetime] = None,
        id: Optional[str] = None,
    ) -> Result["Framework"]:
        if not isinstance(name, FrameworkName):
            name_result = FrameworkName.create(name)
            if name_result.is_failure:
                return Result.fail(name_result.error)
            name = name_result.value
        if not isinstance(version, FrameworkVersion):
            version_result = FrameworkVersion.create(version)
            if version_result.is_failure:
                return Result.fail(version_result.error)
            version = version_result.value

        if is_blank(description):
            return Result.fail(validation_error("EmptyDescription", "Framework description is required"))
        error = (
            check_length(description, DESCRIPTION_MAX, "Framework description")
            or check_length(organization, ORGANIZATION_MAX, "Organization name")
            or check_length(category, CATEGORY_MAX, "Category")
            or check_length(website, WEBSITE_MAX, "Website URL")
        )
        if error:
            return Result.fail(error)

        state = FrameworkState(
            name=name,
            version=version,
            description=description,
            is_active=is_active,
            organization=organization,
            category=category,
            website=website,
            created_by=created_by,
            created_at=as_utc(created_at) or utcnow(),
            **({"id": id} if id else {}),
        )
        return Result.ok(cls(state))

    @property
    def name(self) -> FrameworkName:
        return self._state.name

    @property
    def version(self) -> FrameworkVersion:
        return self._state.version

    @property
    def description(self) -> str:
        return self._state.description

    @property
    def organization(self) -> Optional[str]:
        return self._state.organization

    @property
    def category(self) -> Optional[str]:
        return self._state.category

    @property
    def website(self) -> Optional[str]:
        return self._state.website

    def update_description(self, text: str, actor: Optional[str] = None) -> Result[None]:
        if is_blank(text):
            return self._reject("update_description", validation_error(
                "EmptyDescription", "Description cannot be empty"
            ))
        error = check_length(text, DESCRIPTION_MAX, "Description")
        if error:
            return self._reject("update_description", error)
        return self._commit(actor, description=text)

    def update_website(self, website: Optional[str], actor: Optional[str] = None) -> Result[None]:
        error = check_length(website, WEBSITE_MAX, "Website URL")
        if error:
            return self._reject("update_website", error)
        return self._commit(actor, website=website or None)

    def update_category(self, category: Optional[str], actor: Optional[str] = None) -> Result[None]:
        error = check_length(category, CATEGORY_MAX, "Category")
        if error:
            return self._reject("update_category", error)
        return self._commit(actor, category=category or None)

    def update_organization(self, organization: Optional[str], actor: Optional[str] = None) -> Result[None]:
        error = check_length(organization, ORGANIZATION_MAX, "Organization name")
        if error:
            return self._reject("update_organization", error)
        return self._commit(actor, organization=organization or None)
