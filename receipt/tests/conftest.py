from __future__ import annotations

import json
from typing import Any, Dict

import pytest

from receipt.app.config import ReceiptSettings
from receipt.app.schemas.platform import (
    DataElement,
    Instance,
    Party,
    UserProfile,
)

INSTANCE_GUID = "1c3a4a2e-8d52-4d2b-a6a5-3b6b6a6f7d10"
DATA_ELEMENT_ID = "9b1deb4d-3b7d-4bad-9bdd-2b0d7b3dcb6d"
OWNER_PARTY_ID = 512345


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings() -> ReceiptSettings:
    return ReceiptSettings(
        baseline_language="nb",
        options_max_concurrency=4,
    )


@pytest.fixture
def layouts() -> Dict[str, Any]:
    return {
        "FormLayout": {
            "data": {
                "layout": [
                    {"id": "fruit", "type": "Dropdown", "optionsId": "fruits"},
                    {
                        "id": "color",
                        "type": "Dropdown",
                        "optionsId": "colors",
                        "mapping": {"a.b": "p1"},
                    },
                    {"id": "header", "type": "Header"},
                    {
                        "id": "municipality",
                        "type": "Dropdown",
                        "optionsId": "municipalities",
                        "mapping": {
                            "address.county": "county",
                            "address.missing": "ignored",
                        },
                    },
                    {"id": "fruit-again", "type": "RadioButtons", "optionsId": "fruits"},
                ]
            }
        },
        "Summary": {
            "data": {
                "layout": [
                    {"id": "other", "type": "Dropdown", "optionsId": "unknown-list"},
                ]
            }
        },
    }


@pytest.fixture
def layouts_json(layouts) -> str:
    return json.dumps(layouts)


@pytest.fixture
def submitted_data() -> Dict[str, Any]:
    return {
        "a": {"b": "X"},
        "address": {"county": "Vestland", "zip": 5003},
    }


@pytest.fixture
def option_lists() -> Dict[str, Any]:
    return {
        "fruits": [
            {"label": "Apple", "value": "1"},
            {"label": "Banana", "value": "2"},
        ],
        "colors": [
            {"label": "Red", "value": "1"},
            {"label": "Red", "value": "2"},
            {"label": "Blue", "value": "3"},
        ],
        "municipalities": [
            {"label": "Bergen", "value": "4601"},
        ],
    }


@pytest.fixture
def instance() -> Instance:
    return Instance.model_validate(
        {
            "id": f"{OWNER_PARTY_ID}/{INSTANCE_GUID}",
            "appId": "ttd/receipt-app",
            "org": "ttd",
            "instanceOwner": {"partyId": str(OWNER_PARTY_ID)},
            "data": [{"id": DATA_ELEMENT_ID, "dataType": "model"}],
            "process": {"currentTask": {"elementId": "Task_1"}},
        }
    )


@pytest.fixture
def data_element(instance) -> DataElement:
    return instance.data[0]


@pytest.fixture
def owner_party() -> Party:
    return Party(partyId=OWNER_PARTY_ID, name="Ola Nordmann", ssn="01017012345")


@pytest.fixture
def person_party() -> Party:
    return Party(partyId=600001, name="Kari Nordmann", ssn="02028012345")


@pytest.fixture
def org_party() -> Party:
    return Party(partyId=700001, name="Testdepartementet", orgNumber="910000001")


@pytest.fixture
def user_profile(person_party) -> UserProfile:
    return UserProfile(
        userId=1337,
        partyId=person_party.party_id,
        party=person_party,
        profileSettingPreference={"language": "en"},
    )

