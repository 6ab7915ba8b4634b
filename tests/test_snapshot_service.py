"""Tests for the snapshot procedure."""
from datetime import date

import pytest

from base_snapshot.exceptions import InvalidBaseUrlError, LarkApiError
from base_snapshot.models import FieldDefinition, Record, SnapshotConfig, TableInfo
from base_snapshot.snapshot import SnapshotService, snapshot_table_name

from conftest import FakeResponse, make_mock_client, ok

SOURCE_URL = "https://x.larksuite.com/base/src1?table=tblA"
TODAY = date(2024, 3, 5)


def make_config(**kwargs):
    values = {"source_base_url": SOURCE_URL, "target_base_name": "Snap"}
    values.update(kwargs)
    return SnapshotConfig(**values)


@pytest.fixture
def mock_client():
    return make_mock_client()


@pytest.fixture
def service(mock_client):
    return SnapshotService(mock_client, today=lambda: TODAY)


class TestTableName:

    def test_suffix_uses_date(self):
        assert snapshot_table_name("Tasks", TODAY) == "Tasks_snap_20240305"


class TestCreateSnapshot:

    def test_success(self, service, mock_client):
        result = service.create_snapshot(make_config())

        assert result.success
        assert result.errors == []
        assert result.tables_processed == 1
        assert result.records_processed == 2
        assert result.fields_converted == 1
        assert result.source_base.name == "Source"
        assert result.target_base.app_token == "dst1"
        assert result.created_at.endswith("Z")

        mock_client.delete_table.assert_called_once_with("dst1", "tblDefault")
        name, fields = mock_client.create_table.call_args[0][1:]
        assert name == "Tasks_snap_20240305"
        assert [(f.field_name, f.type) for f in fields] == [("Name", 1), ("Owner", 1)]
        mock_client.create_records.assert_called_once_with("dst1", "tblNew", [
            {"Name": "one", "Owner": "Alice"},
            {"Name": "two"},
        ])
        mock_client.add_collaborator.assert_called_once_with("dst1", "ou_1")

    def test_table_id_from_url_passed_to_fallback(self, service, mock_client):
        service.create_snapshot(make_config())
        mock_client.list_tables_with_fallback.assert_called_once_with("src1", "tblA")

    def test_default_table_kept_when_not_default_named(self, service, mock_client):
        mock_client.list_tables.return_value = [TableInfo(table_id="tblX", name="Custom")]
        service.create_snapshot(make_config())
        mock_client.delete_table.assert_not_called()

    def test_default_table_delete_failure_ignored(self, service, mock_client):
        mock_client.delete_table.side_effect = LarkApiError(1, "boom")
        result = service.create_snapshot(make_config())
        assert result.success

    def test_admin_grant_skipped(self, service, mock_client):
        result = service.create_snapshot(make_config(grant_admin_permission=False))
        assert result.success
        mock_client.get_current_user.assert_not_called()
        mock_client.add_collaborator.assert_not_called()

    def test_admin_grant_failure_recorded(self, service, mock_client):
        mock_client.add_collaborator.side_effect = LarkApiError(1063002, "no permission")
        result = service.create_snapshot(make_config())
        assert not result.success
        assert len(result.errors) == 1
        assert result.errors[0].message.startswith("Failed to grant admin permission:")
        assert result.errors[0].code == "1063002"
        assert result.records_processed == 2

    def test_selected_tables_only(self, service, mock_client):
        mock_client.list_tables_with_fallback.return_value = [
            TableInfo(table_id="tblA", name="Tasks"),
            TableInfo(table_id="tblB", name="People"),
        ]
        result = service.create_snapshot(make_config(selected_table_ids=["tblB"]))
        assert result.tables_processed == 1
        assert mock_client.create_table.call_args[0][1] == "People_snap_20240305"

    def test_empty_selection_means_all_tables(self, service, mock_client):
        mock_client.list_tables_with_fallback.return_value = [
            TableInfo(table_id="tblA", name="Tasks"),
            TableInfo(table_id="tblB", name="People"),
        ]
        result = service.create_snapshot(make_config(selected_table_ids=[]))
        assert result.tables_processed == 2

    def test_table_without_records_creates_no_rows(self, service, mock_client):
        mock_client.list_records_with_fallback.return_value = []
        result = service.create_snapshot(make_config())
        assert result.success
        assert result.records_processed == 0
        assert result.fields_converted == 1
        mock_client.create_records.assert_not_called()

    def test_no_fields_recorded_as_error(self, service, mock_client):
        mock_client.list_fields_with_fallback.return_value = []
        result = service.create_snapshot(make_config())
        assert not result.success
        assert result.errors[0].table == "Tasks"
        assert "Could not retrieve field definitions" in result.errors[0].message
        mock_client.create_table.assert_not_called()

    def test_table_failure_continues_with_next(self, service, mock_client):
        mock_client.list_tables_with_fallback.return_value = [
            TableInfo(table_id="tblA", name="Tasks"),
            TableInfo(table_id="tblB", name="People"),
        ]
        mock_client.create_table.side_effect = [
            LarkApiError(1254000, "WrongRequestBody"),
            TableInfo(table_id="tblNew", name="People_snap_20240305"),
        ]
        result = service.create_snapshot(make_config())

        assert not result.success
        assert len(result.errors) == 1
        assert result.errors[0].table == "Tasks"
        assert result.errors[0].message.startswith("Failed to process table:")
        assert result.errors[0].code == "1254000"
        assert result.records_processed == 2
        assert mock_client.create_records.call_count == 1

    def test_setup_failure_is_fatal(self, service, mock_client):
        mock_client.resolve_base_app_token.side_effect = InvalidBaseUrlError("bad")
        result = service.create_snapshot(make_config(source_base_url="bad"))

        assert not result.success
        assert result.tables_processed == 0
        assert result.source_base.url == "bad"
        assert result.target_base.name == "Snap"
        assert result.target_base.app_token == ""
        assert len(result.errors) == 1
        mock_client.create_base.assert_not_called()

    def test_create_base_failure_is_fatal(self, service, mock_client):
        mock_client.create_base.side_effect = LarkApiError(1254003, "folder not found")
        result = service.create_snapshot(make_config())
        assert not result.success
        assert "folder not found" in result.errors[0].message

    def test_bracketed_target_name(self, service, mock_client):
        result = service.create_snapshot(make_config(target_base_name="Sales [/old] copy [bold]"))
        assert result.success
        mock_client.create_base.assert_called_once_with("Sales [/old] copy [bold]")

    def test_no_fields_error_has_no_code(self, service, mock_client):
        mock_client.list_fields_with_fallback.return_value = []
        result = service.create_snapshot(make_config())
        assert result.errors[0].code is None
        assert "code" not in result.errors[0].to_dict()

    def test_to_dict(self, service):
        body = service.create_snapshot(make_config()).to_dict()
        assert body["success"] is True
        assert body["targetBase"]["app_token"] == "dst1"
        assert body["recordsProcessed"] == 2
        assert body["errors"] == []


class TestAttachments:

    def setup_method(self):
        self.client = make_mock_client()
        self.client.list_fields_with_fallback.return_value = [
            FieldDefinition(field_name="Name", type=1, ui_type="Text"),
            FieldDefinition(field_name="Files", type=17, ui_type="Attachment"),
        ]
        self.client.list_fields.return_value = [
            FieldDefinition(field_name="Name", type=1, ui_type="Text"),
            FieldDefinition(field_name="Files", type=17, ui_type="Attachment"),
        ]
        self.client.list_records_with_fallback.return_value = [
            Record(record_id="r1", fields={"Name": "one", "Files": [
                {"file_token": "fA", "name": "a.pdf"},
                {"file_token": "fB", "name": "b.png"},
            ]}),
        ]
        self.client.download_attachment.side_effect = lambda token: f"bytes-{token}".encode()
        self.client.upload_attachment.side_effect = lambda app, name, content: f"new-{name}"
        self.service = SnapshotService(self.client, today=lambda: TODAY)

    def test_attachments_become_file_names_by_default(self):
        result = self.service.create_snapshot(make_config())
        assert result.fields_converted == 1
        rows = self.client.create_records.call_args[0][2]
        assert rows == [{"Name": "one", "Files": "a.pdf, b.png"}]
        self.client.download_attachment.assert_not_called()

    def test_preserved_attachments_are_copied(self):
        result = self.service.create_snapshot(make_config(preserve_attachments=True))
        assert result.success
        assert result.fields_converted == 0
        rows = self.client.create_records.call_args[0][2]
        assert rows == [{"Name": "one", "Files": [{"file_token": "new-a.pdf"}, {"file_token": "new-b.png"}]}]
        self.client.upload_attachment.assert_any_call("dst1", "a.pdf", b"bytes-fA")

    def test_failed_attachment_recorded_and_skipped(self):
        def download(token):
            if token == "fA":
                raise LarkApiError(1061004, "forbidden")
            return b"data"

        self.client.download_attachment.side_effect = download
        result = self.service.create_snapshot(make_config(preserve_attachments=True))

        assert not result.success
        error = result.errors[0]
        assert (error.table, error.record, error.field) == ("Tasks", "r1", "Files")
        assert "a.pdf" in error.message
        assert error.code == "1061004"
        rows = self.client.create_records.call_args[0][2]
        assert rows == [{"Name": "one", "Files": [{"file_token": "new-b.png"}]}]


class TestEndToEnd:
    """A full snapshot through the HTTP layer of the client."""

    def test_link_field_snapshot(self, make_client, fake_session):
        src = "/bitable/v1/apps/src1"
        dst = "/bitable/v1/apps/dst1"
        fake_session.add("GET", src, ok({"app": {"app_token": "src1", "name": "Source"}}))
        fake_session.add("POST", "/bitable/v1/apps", ok({"app": {"app_token": "dst1", "name": "Snap"}}))
        fake_session.add("GET", dst + "/tables", ok({"items": [{"table_id": "tblDef", "name": "数据表"}]}))
        fake_session.add("DELETE", dst + "/tables/tblDef", ok())
        fake_session.add("GET", src + "/tables", ok({"items": [{"table_id": "tblA", "name": "Tasks"}]}))
        fake_session.add("GET", src + "/tables/tblA/fields", ok({"items": [
            {"field_name": "Title", "type": 1, "ui_type": "Text", "is_primary": True},
            {"field_name": "Related", "type": 18, "ui_type": "SingleLink",
             "property": {"table_id": "tblB", "multiple": True}},
        ]}))
        fake_session.add("POST", dst + "/tables", ok({"table_id": "tblNew"}))
        fake_session.add("GET", dst + "/tables/tblNew/fields", ok({"items": [
            {"field_name": "Title", "type": 1}, {"field_name": "Related", "type": 1},
        ]}))
        fake_session.add("GET", src + "/tables/tblA/records", ok({"items": [
            {"record_id": "r1", "fields": {"Title": "First", "Related": [{"record_id": "x1", "text": "A"},
                                                                           {"record_id": "r2"}]}},
            {"record_id": "r2", "fields": {"Title": "Second"}},
        ]}))
        fake_session.add("POST", dst + "/tables/tblNew/records/batch_create", ok({"records": []}))
        fake_session.add("GET", "/authen/v1/user_info", ok({"open_id": "ou_1", "name": "Alice"}))
        fake_session.add("POST", "/drive/v1/permissions/dst1/members", ok())

        client = make_client(user_access_token="u-token")
        service = SnapshotService(client, today=lambda: TODAY)
        result = service.create_snapshot(SnapshotConfig(
            source_base_url="https://x.larksuite.com/base/src1", target_base_name="Snap"))

        assert result.success, result.errors
        assert result.records_processed == 2
        assert result.fields_converted == 1

        create_body = fake_session.calls_to("POST", dst + "/tables")[0]["json"]["table"]
        assert create_body["name"] == "Tasks_snap_20240305"
        assert [(f["field_name"], f["type"]) for f in create_body["fields"]] == [("Title", 1), ("Related", 1)]
        assert "property" not in create_body["fields"][1]

        rows = fake_session.calls_to("POST", dst + "/tables/tblNew/records/batch_create")[0]["json"]["records"]
        assert rows == [
            {"fields": {"Title": "First", "Related": "A, r2"}},
            {"fields": {"Title": "Second"}},
        ]
        assert len(fake_session.calls_to("DELETE", dst + "/tables/tblDef")) == 1

    def test_unreachable_source_is_fatal(self, make_client, fake_session):
        fake_session.add("GET", "/bitable/v1/apps/src1", FakeResponse(502, None, content=b"bad gateway"))
        service = SnapshotService(make_client(), today=lambda: TODAY)
        result = service.create_snapshot(SnapshotConfig(
            source_base_url="https://x.larksuite.com/base/src1", target_base_name="Snap"))
        assert not result.success
        assert "HTTP 502" in result.errors[0].message
        assert fake_session.calls_to("POST", "/bitable/v1/apps") == []
