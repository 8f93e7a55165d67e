"""Shared fixtures for rookie_guide.ops tests."""

import pytest

from rookie_guide.ops.context import OperationContext
from rookie_guide.ops.requests import CreateTemplateRequest, StepInput


@pytest.fixture()
def ctx(conn) -> OperationContext:
    """Context acting as ``alice`` on the schema-initialised connection."""
    return OperationContext(conn=conn, caller="test", user="alice")


@pytest.fixture()
def bob_ctx(conn) -> OperationContext:
    return OperationContext(conn=conn, caller="test", user="bob")


@pytest.fixture()
def anon_ctx(conn) -> OperationContext:
    """Context without a user identity."""
    return OperationContext(conn=conn, caller="test")


@pytest.fixture()
def dry_ctx(conn) -> OperationContext:
    """Context acting as ``alice`` with dry_run=True."""
    return OperationContext(conn=conn, caller="test", user="alice", dry_run=True)


def template_request(**overrides) -> CreateTemplateRequest:
    fields = {
        "title": "Moving to Beijing",
        "description": "Everything a newcomer needs in the first month",
        "location_tag": "CN-BJ",
        "steps": [
            StepInput(title="Get a SIM card", description="Bring your passport"),
            StepInput(title="Open a bank account"),
            StepInput(title="Register residence"),
        ],
    }
    fields.update(overrides)
    return CreateTemplateRequest(**fields)


@pytest.fixture()
def create_request():
    """Factory for valid create requests; keyword overrides replace fields."""
    return template_request
