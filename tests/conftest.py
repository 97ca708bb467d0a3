"""Shared fixtures: a fake MS Graph / ARM backend and a fake operator credential."""
from unittest import mock

import pytest

import azElevator


SUBSCRIPTION_ID = "11111111-1111-1111-1111-111111111111"
PRINCIPAL_ID = "22222222-2222-2222-2222-222222222222"
GLOBAL_ADMIN_ID = "62e90394-69f5-4237-9190-012177145e10"
OWNER_ID = "8e3af657-a8ff-443c-a75c-2fe8c4bcb635"


def make_response(status_code=200, payload=None, text=""):
    response = mock.Mock()
    response.status_code = status_code
    response.text = text
    if payload is None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = payload
    return response


def error_response(code, message, status_code=400):
    return make_response(status_code, {"error": {"code": code, "message": message}})


def graph_eligibility(role_name="Global Administrator"):
    return {
        "id": "eligibility-1",
        "principalId": PRINCIPAL_ID,
        "roleDefinitionId": GLOBAL_ADMIN_ID,
        "directoryScopeId": "/",
        "roleDefinition": {"id": GLOBAL_ADMIN_ID, "displayName": role_name},
    }


def graph_active_instance(assignment_type="Activated"):
    return {
        "id": "instance-1",
        "principalId": PRINCIPAL_ID,
        "roleDefinitionId": GLOBAL_ADMIN_ID,
        "directoryScopeId": "/",
        "assignmentType": assignment_type,
        "endDateTime": "2026-10-17T18:00:00Z",
        "roleDefinition": {"id": GLOBAL_ADMIN_ID, "displayName": "Global Administrator"},
    }


def arm_instance(assignment_type="Activated", scope=None, role_id=OWNER_ID):
    return {
        "id": "arm-instance-1",
        "properties": {
            "principalId": PRINCIPAL_ID,
            "roleDefinitionId": f"/subscriptions/{SUBSCRIPTION_ID}/providers/Microsoft.Authorization/roleDefinitions/{role_id}",
            "scope": scope or f"/subscriptions/{SUBSCRIPTION_ID}",
            "assignmentType": assignment_type,
            "roleEligibilityScheduleId": "/providers/Microsoft.Authorization/roleEligibilitySchedules/schedule-1",
            "endDateTime": "2026-10-17T18:00:00Z",
        },
    }


class FakeBackend:
    """Routes requests calls to canned MS Graph and ARM answers and records them."""

    def __init__(self):
        self.calls = []
        self.principal = make_response(200, {"id": PRINCIPAL_ID, "userPrincipalName": "operator@contoso.com"})
        self.graph_eligibilities = make_response(200, {"value": [graph_eligibility()]})
        self.graph_active = make_response(200, {"value": []})
        self.graph_request = make_response(201, {"id": "request-1", "status": "Provisioned"})
        self.arm_eligibilities = make_response(200, {"value": [arm_instance(assignment_type=None)]})
        self.arm_active = make_response(200, {"value": []})
        self.arm_request = make_response(201, {"name": "request-2"})

    def _record(self, method, url, json=None):
        self.calls.append((method, url, json))

    def get(self, url, headers=None):
        self._record("GET", url)
        if url.startswith(azElevator.MSGRAPH_ENDPOINT + "/me"):
            return self.principal
        if url.startswith(azElevator.MSGRAPH_ENDPOINT) and "roleEligibilitySchedules" in url:
            return self.graph_eligibilities
        if url.startswith(azElevator.MSGRAPH_ENDPOINT) and "roleAssignmentScheduleInstances" in url:
            return self.graph_active
        if url.startswith(azElevator.ARM_ENDPOINT) and "roleEligibilityScheduleInstances" in url:
            return self.arm_eligibilities
        if url.startswith(azElevator.ARM_ENDPOINT) and "roleAssignmentScheduleInstances" in url:
            return self.arm_active
        raise AssertionError(f"Unexpected GET {url}")

    def post(self, url, headers=None, json=None):
        self._record("POST", url, json)
        if url.endswith("/roleManagement/directory/roleAssignmentScheduleRequests"):
            return self.graph_request
        raise AssertionError(f"Unexpected POST {url}")

    def put(self, url, headers=None, json=None):
        self._record("PUT", url, json)
        if url.startswith(azElevator.ARM_ENDPOINT) and "roleAssignmentScheduleRequests/" in url:
            return self.arm_request
        raise AssertionError(f"Unexpected PUT {url}")

    def requests_for(self, method):
        return [call for call in self.calls if call[0] == method]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    for key in ("AZURE_TENANT_ID", "AZURE_SUBSCRIPTION_ID"):
        monkeypatch.delenv(key, raising=False)
    # Keep the repository config.json out of the tests
    monkeypatch.setenv("AZELEVATOR_CONFIG_FILE", str(tmp_path / "missing-config.json"))


@pytest.fixture
def backend(monkeypatch):
    fake = FakeBackend()
    monkeypatch.setattr(azElevator.requests, "get", fake.get)
    monkeypatch.setattr(azElevator.requests, "post", fake.post)
    monkeypatch.setattr(azElevator.requests, "put", fake.put)
    return fake


@pytest.fixture
def credential(monkeypatch):
    fake = mock.Mock()
    fake.get_token.return_value = mock.Mock(token="access-token")
    factory = mock.Mock(return_value=fake)
    monkeypatch.setattr(azElevator, "get_credential", factory)
    return fake
