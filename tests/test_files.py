"""
文件接口测试
"""
import asyncio

import pytest
from sqlalchemy.exc import SQLAlchemyError

from dataroom.core.config import settings
from dataroom.services.file_service import FileService
from dataroom.services.storage import BlobStorageError


def upload(client, headers, name="report.pdf", content=b"%PDF-1.4 test", mime="application/pdf", **form):
    return client.post(
        "/files/upload",
        files={"file": (name, content, mime)},
        data=form,
        headers=headers,
    )


def test_upload_file(client, signup, blob_storage):
    user, headers = signup()
    r = upload(client, headers, isPublic="true", description="Q3 report", tags="finance, q3 ,")
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["message"] == "File uploaded successfully"

    file = body["file"]
    assert file["userId"] == user["id"]
    assert file["originalName"] == "report.pdf"
    assert file["mimeType"] == "application/pdf"
    assert file["size"] == len(b"%PDF-1.4 test")
    assert file["isPublic"] is True
    assert file["description"] == "Q3 report"
    assert file["tags"] == ["finance", "q3"]
    assert file["folderId"] is None
    assert file["blobPathname"].startswith(f"{user['id']}/")
    assert file["blobPathname"].endswith(".pdf")
    assert blob_storage.blobs[file["blobPathname"]] == b"%PDF-1.4 test"


def test_upload_defaults_to_private(client, signup):
    _, headers = signup()
    r = upload(client, headers)
    assert r.status_code == 201
    assert r.json()["file"]["isPublic"] is False
    assert r.json()["file"]["tags"] == []


def test_upload_without_file(client, signup):
    _, headers = signup()
    r = client.post("/files/upload", data={"description": "nothing"}, headers=headers)
    assert r.status_code == 400
    assert r.json() == {"error": "No file provided"}


def test_upload_disallowed_type(client, signup, blob_storage):
    _, headers = signup()
    r = upload(client, headers, name="run.exe", content=b"MZ", mime="application/x-msdownload")
    assert r.status_code == 400
    assert r.json() == {"error": "File type application/x-msdownload is not allowed"}
    assert blob_storage.blobs == {}


def test_upload_too_large(client, signup, blob_storage, monkeypatch):
    monkeypatch.setattr(settings, "MAX_FILE_SIZE", 2 * 1024 * 1024)
    _, headers = signup()
    r = upload(client, headers, name="big.txt", content=b"x" * (2 * 1024 * 1024 + 1), mime="text/plain")
    assert r.status_code == 400
    assert r.json() == {"error": "File size exceeds limit of 2MB"}
    assert blob_storage.blobs == {}


def test_upload_into_folder(client, signup):
    _, headers = signup()
    folder = client.post("/folders", json={"name": "Docs"}, headers=headers).json()["folder"]
    r = upload(client, headers, folderId=folder["id"])
    assert r.status_code == 201
    assert r.json()["file"]["folderId"] == folder["id"]


def test_upload_into_foreign_folder(client, signup, blob_storage):
    _, alice = signup()
    _, bob = signup()
    folder = client.post("/folders", json={"name": "Alice only"}, headers=alice).json()["folder"]

    r = upload(client, bob, folderId=folder["id"])
    assert r.status_code == 404
    assert r.json() == {"error": "Target folder not found or access denied"}
    assert blob_storage.blobs == {}


def test_upload_storage_failure(client, signup, blob_storage, monkeypatch):
    async def broken_put(pathname, data, content_type):
        raise BlobStorageError("storage offline")

    monkeypatch.setattr(blob_storage, "put", broken_put)
    _, headers = signup()
    r = upload(client, headers)
    assert r.status_code == 400
    assert r.json() == {"error": "Failed to upload file"}
    assert client.get("/files/my-files", headers=headers).json()["count"] == 0


class FailingCommitSession:
    """提交时抛出数据库异常的会话"""

    def __init__(self):
        self.added = []
        self.rolled_back = False

    def add(self, obj):
        self.added.append(obj)

    async def commit(self):
        raise SQLAlchemyError("database unavailable")

    async def rollback(self):
        self.rolled_back = True


def test_upload_removes_blob_when_commit_fails(blob_storage):
    session = FailingCommitSession()

    with pytest.raises(SQLAlchemyError):
        asyncio.run(FileService.upload_file(
            session,
            blob_storage,
            user_id="user-1",
            original_name="notes.txt",
            mime_type="text/plain",
            data=b"hello",
        ))

    assert len(session.added) == 1
    assert session.rolled_back
    assert blob_storage.blobs == {}


def test_my_files_only_returns_own_files(client, signup):
    _, alice = signup()
    _, bob = signup()
    upload(client, alice)
    upload(client, alice, name="b.txt", content=b"b", mime="text/plain")
    upload(client, bob)

    r = client.get("/files/my-files", headers=alice)
    assert r.status_code == 200
    assert r.json()["count"] == 2


def test_get_file_visibility(client, signup):
    _, alice = signup()
    _, bob = signup()
    private = upload(client, alice).json()["file"]
    public = upload(client, alice, isPublic="true").json()["file"]

    assert client.get(f"/files/file/{private['id']}", headers=alice).status_code == 200
    assert client.get(f"/files/file/{public['id']}", headers=bob).status_code == 200

    r = client.get(f"/files/file/{private['id']}", headers=bob)
    assert r.status_code == 404
    assert r.json() == {"error": "File not found or access denied"}


def test_public_file_redirect(client, signup):
    _, headers = signup()
    public = upload(client, headers, isPublic="true").json()["file"]
    private = upload(client, headers).json()["file"]

    r = client.get(f"/files/public/{public['id']}", follow_redirects=False)
    assert r.status_code == 307
    assert r.headers["location"] == public["blobUrl"]

    r = client.get(f"/files/public/{private['id']}", follow_redirects=False)
    assert r.status_code == 404
    assert r.json() == {"error": "File not found or not public"}


def test_update_file_metadata(client, signup):
    _, headers = signup()
    file = upload(client, headers, description="old", tags="a").json()["file"]

    r = client.put(
        f"/files/file/{file['id']}",
        json={"description": "new", "tags": ["x", "y"], "isPublic": True},
        headers=headers,
    )
    assert r.status_code == 200
    updated = r.json()["file"]
    assert updated["description"] == "new"
    assert updated["tags"] == ["x", "y"]
    assert updated["isPublic"] is True

    # 未提供的字段保持不变
    r = client.put(f"/files/file/{file['id']}", json={"isPublic": False}, headers=headers)
    assert r.json()["file"]["description"] == "new"
    assert r.json()["file"]["tags"] == ["x", "y"]
    assert r.json()["file"]["isPublic"] is False


def test_update_foreign_file(client, signup):
    _, alice = signup()
    _, bob = signup()
    file = upload(client, alice, isPublic="true").json()["file"]
    r = client.put(f"/files/file/{file['id']}", json={"description": "mine now"}, headers=bob)
    assert r.status_code == 404


def test_delete_file(client, signup, blob_storage):
    _, headers = signup()
    file = upload(client, headers).json()["file"]

    r = client.delete(f"/files/file/{file['id']}", headers=headers)
    assert r.status_code == 200
    assert r.json() == {"message": "File deleted successfully"}
    assert file["blobPathname"] not in blob_storage.blobs
    assert client.get(f"/files/file/{file['id']}", headers=headers).status_code == 404


def test_delete_foreign_file(client, signup, blob_storage):
    _, alice = signup()
    _, bob = signup()
    file = upload(client, alice).json()["file"]

    r = client.delete(f"/files/file/{file['id']}", headers=bob)
    assert r.status_code == 404
    assert file["blobPathname"] in blob_storage.blobs


def test_delete_file_storage_failure_keeps_record(client, signup, blob_storage, monkeypatch):
    async def broken_delete(url_or_pathname):
        raise BlobStorageError("storage offline")

    _, headers = signup()
    file = upload(client, headers).json()["file"]
    monkeypatch.setattr(blob_storage, "delete", broken_delete)

    r = client.delete(f"/files/file/{file['id']}", headers=headers)
    assert r.status_code == 500
    assert r.json() == {"error": "Failed to delete file"}
    assert client.get(f"/files/file/{file['id']}", headers=headers).status_code == 200


def test_move_file(client, signup):
    _, headers = signup()
    folder = client.post("/folders", json={"name": "Docs"}, headers=headers).json()["folder"]
    file = upload(client, headers).json()["file"]

    r = client.patch(f"/files/{file['id']}/move", json={"folderId": folder["id"]}, headers=headers)
    assert r.status_code == 200
    assert r.json()["file"]["folderId"] == folder["id"]

    r = client.patch(f"/files/{file['id']}/move", json={"folderId": None}, headers=headers)
    assert r.status_code == 200
    assert r.json()["file"]["folderId"] is None


def test_move_file_to_foreign_folder(client, signup):
    _, alice = signup()
    _, bob = signup()
    folder = client.post("/folders", json={"name": "Alice only"}, headers=alice).json()["folder"]
    file = upload(client, bob).json()["file"]

    r = client.patch(f"/files/{file['id']}/move", json={"folderId": folder["id"]}, headers=bob)
    assert r.status_code == 404
    assert r.json() == {"error": "Target folder not found or access denied"}
