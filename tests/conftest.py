"""
Pytest configuration and shared fixtures.
"""

import os
import sys
from typing import Any, Callable, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

# Make the src/ layout importable without installing
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))

from base_snapshot.config import AppSettings
from base_snapshot.lark_client import LarkClient
from base_snapshot.models import BaseInfo, FieldDefinition, Record, TableInfo, UserInfo

API_BASE = "https://open.test/open-apis"


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code: int = 200, json_data: Any = None,
                 content: bytes = b"", headers: Dict[str, str] = None, text: str = None):
        self.status_code = status_code
        self._json = json_data
        self.content = content
        self.headers = headers or ({"Content-Type": "application/json"} if json_data is not None else {})
        self.text = text if text is not None else (content.decode("utf-8", "replace") if content else "")

    def json(self):
        if self._json is None:
            raise ValueError("No JSON body")
        return self._json


def ok(data: Any = None, **extra) -> FakeResponse:
    """A successful API envelope."""
    body = {"code": 0, "msg": "success", "data": data if data is not None else {}}
    body.update(extra)
    return FakeResponse(200, body)


def api_error(code: int, msg: str, status_code: int = 200) -> FakeResponse:
    return FakeResponse(status_code, {"code": code, "msg": msg})


class FakeSession:
    """Scripted replacement for requests.Session.

    Routes map (METHOD, path) to a FakeResponse, a list of responses served
    in order (the last one repeats), a callable taking the call dict, or an
    exception instance to raise.
    """

    def __init__(self):
        self.routes: Dict[tuple, Any] = {}
        self.calls: List[Dict[str, Any]] = []
        self.add("POST", "/auth/v3/tenant_access_token/internal",
                 FakeResponse(200, {"code": 0, "msg": "ok", "tenant_access_token": "t-tenant", "expire": 7200}))

    def add(self, method: str, path: str, handler: Any):
        self.routes[(method.upper(), path)] = handler

    def calls_to(self, method: str, path: str) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["method"] == method.upper() and c["path"] == path]

    def request(self, method: str, url: str, **kwargs) -> FakeResponse:
        path = url.split("/open-apis", 1)[1] if "/open-apis" in url else url
        call = {"method": method.upper(), "path": path, "url": url}
        call.update(kwargs)
        self.calls.append(call)

        handler = self.routes.get((method.upper(), path))
        if handler is None:
            return FakeResponse(404, None, content=b"not found")
        if isinstance(handler, list):
            handler = handler.pop(0) if len(handler) > 1 else handler[0]
        if isinstance(handler, BaseException):
            raise handler
        if callable(handler) and not isinstance(handler, FakeResponse):
            return handler(call)
        return handler

    def post(self, url: str, **kwargs) -> FakeResponse:
        return self.request("POST", url, **kwargs)


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def make_client(fake_session) -> Callable[..., LarkClient]:
    """Factory for clients wired to the fake session, with no rate limiting or backoff."""
    def factory(user_access_token: Optional[str] = None, **kwargs) -> LarkClient:
        return LarkClient(
            "cli_test", "secret",
            user_access_token=user_access_token,
            base_url=API_BASE,
            session=fake_session,
            rate_limit_interval=0,
            retry_base_delay=0,
            **kwargs,
        )
    return factory


@pytest.fixture
def client(make_client) -> LarkClient:
    return make_client()


@pytest.fixture
def settings(tmp_path) -> AppSettings:
    return AppSettings(
        app_id="cli_test",
        app_secret="secret",
        redirect_uri="http://localhost:3000/api/auth/callback",
        client_url="http://localhost:5173",
        api_base_url=API_BASE,
        session_file=str(tmp_path / "sessions.json"),
        rate_limit_interval=0,
        cors_origins=["http://localhost:5173"],
    )


@pytest.fixture
def sample_fields() -> List[FieldDefinition]:
    """One field of each interesting kind, as the fields endpoint returns them."""
    return [
        FieldDefinition(field_id="fld1", field_name="Name", type=1, ui_type="Text", is_primary=True),
        FieldDefinition(field_id="fld2", field_name="Score", type=2, ui_type="Number",
                        property={"formatter": "0.00"}),
        FieldDefinition(field_id="fld3", field_name="Status", type=3, ui_type="SingleSelect",
                        property={"options": [
                            {"id": "opt1", "name": "Open", "color": 0},
                            {"id": "opt2", "name": "Done", "color": 3},
                            {"id": "opt3", "name": ""},
                        ]}),
        FieldDefinition(field_id="fld4", field_name="Owner", type=11, ui_type="User"),
        FieldDefinition(field_id="fld5", field_name="Project", type=18, ui_type="SingleLink",
                        property={"table_id": "tblOther", "multiple": True}),
        FieldDefinition(field_id="fld6", field_name="Budget", type=2, ui_type="Currency",
                        property={"currency_code": "USD"}),
        FieldDefinition(field_id="fld7", field_name="Seq", type=1005, ui_type="AutoNumber"),
    ]


def make_mock_client():
    """A LarkClient double describing one source table with a user field and two rows."""
    client = MagicMock(spec=LarkClient)
    client.resolve_base_app_token.return_value = "src1"
    client.get_base.return_value = BaseInfo(app_token="src1", name="Source")
    client.create_base.return_value = BaseInfo(app_token="dst1", name="Snap", url="https://x/base/dst1")
    client.list_tables.return_value = [TableInfo(table_id="tblDefault", name="Table")]
    client.list_tables_with_fallback.return_value = [TableInfo(table_id="tblA", name="Tasks")]
    client.list_fields_with_fallback.return_value = [
        FieldDefinition(field_name="Name", type=1, ui_type="Text", is_primary=True),
        FieldDefinition(field_name="Owner", type=11, ui_type="User"),
    ]
    client.create_table.return_value = TableInfo(table_id="tblNew", name="Tasks_snap_20240305")
    client.list_fields.return_value = [
        FieldDefinition(field_name="Name", type=1, ui_type="Text"),
        FieldDefinition(field_name="Owner", type=1, ui_type="Text"),
    ]
    client.list_records_with_fallback.return_value = [
        Record(record_id="r1", fields={"Name": "one", "Owner": [{"id": "u1", "name": "Alice"}]}),
        Record(record_id="r2", fields={"Name": "two"}),
    ]
    client.create_records.return_value = []
    client.get_current_user.return_value = UserInfo(open_id="ou_1", name="Alice")
    return client
