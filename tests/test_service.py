"""InquiryService use cases, including side-effect ordering against the blob store."""
import pytest

from app.core.exceptions import Forbidden, NotDeleted, NotFound, StorageFailure, ValidationError
from app.db.models.inquiry import ACTIVE, DELETED
from app.services.documents import IncomingFile
from app.services.inquiry import InquiryService


class TestSubmit:
    def test_submit_without_document(self, service, fields, blobs):
        inquiry = service.submit(fields)
        assert inquiry.id is not None
        assert inquiry.inquiry_status == "pending"
        assert inquiry.status == ACTIVE
        assert inquiry.agreement is True
        assert inquiry.valid_id is None
        assert blobs.blobs == {}

    def test_document_is_stored(self, service, fields, png_file, blobs):
        inquiry = service.submit(fields, png_file)
        assert inquiry.valid_id.startswith("valid_ids/")
        assert inquiry.valid_id.endswith(".png")
        assert blobs.open(inquiry.valid_id) == png_file.content

    def test_rejected_agreement_stores_nothing(self, service, fields, png_file, blobs):
        fields["agreement"] = "0"
        with pytest.raises(ValidationError) as exc:
            service.submit(fields, png_file)
        assert "agreement" in exc.value.fields
        assert blobs.blobs == {}
        assert service.list().total == 0

    def test_blob_removed_when_create_fails(self, service, fields, png_file, blobs, monkeypatch):
        def boom(_fields):
            raise RuntimeError("db down")

        monkeypatch.setattr(service.repo, "create", boom)
        with pytest.raises(RuntimeError):
            service.submit(fields, png_file)
        assert blobs.blobs == {}
        assert len(blobs.deleted) == 1

    def test_storage_failure_surfaces(self, service, fields, png_file, blobs):
        blobs.fail_put = True
        with pytest.raises(StorageFailure):
            service.submit(fields, png_file)
        assert service.list().total == 0


class TestApprove:
    def test_approve_sends_one_email(self, service, fields, notifier):
        inquiry = service.submit(fields)
        outcome = service.approve(inquiry.id, approver="staff@example.com", actor_role="admin")
        assert outcome.inquiry.inquiry_status == "approved"
        assert outcome.inquiry.approved_by == "staff@example.com"
        assert outcome.notified is True
        assert outcome.warning is None
        assert [m["to"] for m in notifier.sent] == ["alice@example.com"]

    def test_notification_failure_is_a_warning(self, service, fields, notifier):
        inquiry = service.submit(fields)
        notifier.fail = True
        outcome = service.approve(inquiry.id, approver="staff@example.com", actor_role="seller")
        assert outcome.notified is False
        assert "could not be sent" in outcome.warning
        assert service.show(inquiry.id).inquiry_status == "approved"

    def test_reapprove_does_not_email_again(self, service, fields, notifier):
        inquiry = service.submit(fields)
        service.approve(inquiry.id, approver="staff@example.com", actor_role="admin")
        outcome = service.approve(inquiry.id, approver="other@example.com", actor_role="admin")
        assert outcome.notified is False
        assert outcome.inquiry.approved_by == "staff@example.com"
        assert len(notifier.sent) == 1

    def test_approve_missing(self, service):
        with pytest.raises(NotFound):
            service.approve(404, approver="staff@example.com", actor_role="admin")

    def test_approve_needs_staff_role(self, service, fields, notifier):
        inquiry = service.submit(fields)
        with pytest.raises(Forbidden):
            service.approve(inquiry.id, approver="someone@example.com", actor_role="users")
        assert service.show(inquiry.id).inquiry_status == "pending"
        assert notifier.sent == []


class TestEdit:
    def test_edit_replaces_document(self, service, fields, edit_fields, png_file, pdf_file, blobs):
        inquiry = service.submit(fields, png_file)
        old_key = inquiry.valid_id

        updated = service.edit(inquiry.id, edit_fields, pdf_file, actor_role="seller")
        assert updated.valid_id != old_key
        assert blobs.deleted == [old_key]
        assert blobs.open(updated.valid_id) == pdf_file.content
        assert updated.price == "4750.50"
        assert updated.room_number == "A-102"

    def test_edit_without_upload_keeps_document(self, service, fields, edit_fields, png_file, blobs):
        inquiry = service.submit(fields, png_file)
        updated = service.edit(inquiry.id, edit_fields, actor_role="seller")
        assert updated.valid_id == inquiry.valid_id
        assert blobs.deleted == []

    def test_first_upload_deletes_nothing(self, service, fields, edit_fields, pdf_file, blobs):
        inquiry = service.submit(fields)
        updated = service.edit(inquiry.id, edit_fields, pdf_file, actor_role="seller")
        assert updated.valid_id is not None
        assert blobs.deleted == []

    def test_failed_update_keeps_old_document(self, service, fields, edit_fields, png_file, pdf_file, blobs, monkeypatch):
        inquiry = service.submit(fields, png_file)
        old_key = inquiry.valid_id

        def boom(_id, _fields):
            raise RuntimeError("db down")

        monkeypatch.setattr(service.repo, "update", boom)
        with pytest.raises(RuntimeError):
            service.edit(inquiry.id, edit_fields, pdf_file, actor_role="seller")

        assert old_key in blobs.blobs
        assert len(blobs.blobs) == 1
        assert service.show(inquiry.id).valid_id == old_key

    def test_invalid_edit_touches_nothing(self, service, fields, edit_fields, png_file, pdf_file, blobs):
        inquiry = service.submit(fields, png_file)
        edit_fields["price"] = "free"
        with pytest.raises(ValidationError):
            service.edit(inquiry.id, edit_fields, pdf_file, actor_role="seller")
        assert len(blobs.blobs) == 1
        assert blobs.deleted == []

    def test_edit_missing(self, service, edit_fields):
        with pytest.raises(NotFound):
            service.edit(12345, edit_fields, actor_role="seller")

    def test_edit_needs_staff_role(self, service, fields, edit_fields, png_file, pdf_file, blobs):
        inquiry = service.submit(fields, png_file)
        with pytest.raises(Forbidden):
            service.edit(inquiry.id, {**edit_fields, "full_name": "Someone Else"}, pdf_file, actor_role="users")

        unchanged = service.show(inquiry.id)
        assert unchanged.full_name == "Alice Santos"
        assert unchanged.valid_id == inquiry.valid_id
        assert list(blobs.blobs) == [inquiry.valid_id]
        assert blobs.deleted == []


class TestSoftDeleteAndRestore:
    def test_deleted_hidden_but_retrievable(self, service, fields):
        inquiry = service.submit(fields)
        service.soft_delete(inquiry.id, "seller")

        assert inquiry.id not in [i.id for i in service.list().items]
        assert service.show(inquiry.id).status == DELETED

    def test_delete_keeps_document_by_default(self, service, fields, png_file, blobs):
        inquiry = service.submit(fields, png_file)
        deleted = service.soft_delete(inquiry.id, "admin")
        assert deleted.valid_id == inquiry.valid_id
        assert blobs.deleted == []

    def test_delete_blob_mode_is_idempotent(self, db, blobs, notifier, fields, png_file):
        service = InquiryService(db, blobs, notifier, delete_blob_on_soft_delete=True)
        inquiry = service.submit(fields, png_file)
        key = inquiry.valid_id

        first = service.soft_delete(inquiry.id, "admin")
        second = service.soft_delete(inquiry.id, "admin")
        assert first.valid_id is None
        assert second.status == DELETED
        assert blobs.deleted == [key]

    def test_delete_forbidden_role(self, service, fields):
        inquiry = service.submit(fields)
        with pytest.raises(Forbidden):
            service.soft_delete(inquiry.id, "users")
        assert service.show(inquiry.id).status == ACTIVE

    def test_restore_active_fails(self, service, fields):
        inquiry = service.submit(fields)
        with pytest.raises(NotDeleted):
            service.restore(inquiry.id, "admin")

    def test_restore_brings_it_back(self, service, fields):
        inquiry = service.submit(fields)
        service.soft_delete(inquiry.id, "admin")
        restored = service.restore(inquiry.id, "users")
        assert restored.status == ACTIVE
        assert inquiry.id in [i.id for i in service.list(search="alice").items]

    def test_restore_forbidden_role(self, service, fields):
        inquiry = service.submit(fields)
        service.soft_delete(inquiry.id, "admin")
        with pytest.raises(Forbidden):
            service.restore(inquiry.id, "seller")
        assert service.show(inquiry.id).status == DELETED


class TestPurge:
    def test_purge_removes_row_and_document(self, service, fields, png_file, blobs):
        inquiry = service.submit(fields, png_file)
        service.soft_delete(inquiry.id, "admin")
        service.purge(inquiry.id, "admin")
        assert blobs.blobs == {}
        with pytest.raises(NotFound):
            service.show(inquiry.id)

    def test_purge_active_fails(self, service, fields):
        inquiry = service.submit(fields)
        with pytest.raises(NotDeleted):
            service.purge(inquiry.id, "admin")

    def test_purge_keeps_row_when_blob_delete_fails(self, service, fields, png_file, blobs):
        inquiry = service.submit(fields, png_file)
        service.soft_delete(inquiry.id, "admin")
        blobs.fail_delete = True
        with pytest.raises(StorageFailure):
            service.purge(inquiry.id, "admin")
        assert service.show(inquiry.id).valid_id == inquiry.valid_id


class TestList:
    def test_filter_and_total(self, service, fields):
        created = [
            service.submit({**fields, "full_name": f"Alice {i}", "email": f"alice{i}@example.com"})
            for i in range(12)
        ]
        service.submit({**fields, "full_name": "Bob", "email": "bob@example.com"})
        service.soft_delete(created[0].id, "admin")

        page = service.list(search="alice", page=1, page_size=10)
        assert page.total == 11
        assert len(page.items) == 10
        assert all("Alice" in i.full_name for i in page.items)
        assert all(i.status == ACTIVE for i in page.items)

        rest = service.list(search="alice", page=2, page_size=10)
        assert len(rest.items) == 1
        assert created[0].id not in [i.id for i in page.items + rest.items]

        beyond = service.list(search="alice", page=3, page_size=10)
        assert beyond.items == []
        assert beyond.total == 11

    def test_invalid_paging(self, service):
        with pytest.raises(ValidationError) as exc:
            service.list(page=0, page_size=0)
        assert set(exc.value.fields) == {"page", "entries_per_page"}

    def test_include_deleted_needs_restore_role(self, service, fields):
        inquiry = service.submit(fields)
        service.soft_delete(inquiry.id, "admin")
        with pytest.raises(Forbidden):
            service.list(include_deleted=True, actor_role="seller")
        page = service.list(include_deleted=True, actor_role="admin")
        assert page.total == 1


def test_open_document(service, fields, png_file):
    inquiry = service.submit(fields, png_file)
    key, content = service.open_document(inquiry.id, actor_role="admin")
    assert key == inquiry.valid_id
    assert content == png_file.content


def test_open_document_without_upload(service, fields):
    inquiry = service.submit(fields)
    with pytest.raises(NotFound):
        service.open_document(inquiry.id, actor_role="admin")


def test_open_document_needs_staff_role(service, fields, png_file):
    inquiry = service.submit(fields, png_file)
    with pytest.raises(Forbidden):
        service.open_document(inquiry.id, actor_role="users")
