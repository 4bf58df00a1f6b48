import io
from fastapi import status
from minio_uploader.core.exceptions import StoreError

def upload_chunk(client, digest, index, total, data):
    return client.post(
        f"/api/uploads/{digest}/chunks",
        data={"curr_index": str(index), "total_pieces": str(total)},
        files={"file": (f"chunk_{index}", io.BytesIO(data))}
    )

def test_chunked_upload_and_compose(test_client, store):
    """Test a full chunked upload followed by compose."""
    # Upload chunks out of order
    response = upload_chunk(test_client, "abc", 1, 3, b"BBB")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "all_completed": False,
        "remain_index": [0, 1, 2],
        "message": "index [1] has been uploaded",
    }

    response = upload_chunk(test_client, "abc", 0, 3, b"AAA")
    assert response.json()["remain_index"] == [0, 2]

    response = upload_chunk(test_client, "abc", 2, 3, b"CCC")
    data = response.json()
    assert data["all_completed"] is True
    assert data["remain_index"] is None
    assert data["message"] == "completed"

    # Compose into the destination
    response = test_client.post(
        "/api/uploads/abc/compose",
        json={"bucket": "bkt", "object_name": "videos/out.bin", "total_pieces": 3}
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"composed": True, "bucket": "bkt", "object_name": "videos/out.bin"}
    assert store.objects("bkt")["videos/out.bin"] == b"AAABBBCCC"
    assert store.objects("temp-bucket", "abc/") == {}

def test_reupload_reports_existing_chunk(test_client):
    upload_chunk(test_client, "abc", 0, 2, b"AAA")

    response = upload_chunk(test_client, "abc", 0, 2, b"AAA")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["message"] == "index [0] exists"
    assert response.json()["remain_index"] == [1]

def test_invalid_index_is_bad_request(test_client, store):
    response = upload_chunk(test_client, "abc", 5, 3, b"AAA")

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    body = response.json()
    assert body["error"] == "ValidationError"
    assert body["details"]["curr_index"] == 5
    assert store.calls == []

def test_blank_digest_is_bad_request(test_client):
    response = upload_chunk(test_client, "%20%20", 0, 1, b"A")

    assert response.status_code == status.HTTP_400_BAD_REQUEST

def test_missing_form_fields_are_rejected(test_client):
    response = test_client.post(
        "/api/uploads/abc/chunks",
        files={"file": ("chunk", io.BytesIO(b"A"))}
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

def test_compose_incomplete_upload_is_conflict(test_client, store):
    upload_chunk(test_client, "abc", 0, 3, b"AAA")

    response = test_client.post(
        "/api/uploads/abc/compose",
        json={"bucket": "bkt", "object_name": "out.bin", "total_pieces": 3}
    )

    assert response.status_code == status.HTTP_409_CONFLICT
    body = response.json()
    assert body["error"] == "IncompleteUploadError"
    assert body["details"] == {"digest": "abc", "expected": 3, "found": 1}
    assert "out.bin" not in store.objects("bkt")

def test_compose_without_any_chunks_is_conflict(test_client, store):
    response = test_client.post(
        "/api/uploads/never-sent/compose",
        json={"bucket": "bkt", "object_name": "out.bin", "total_pieces": 2}
    )

    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["details"] == {"digest": "never-sent", "expected": 2, "found": 0}

def test_compose_store_failure_is_bad_gateway(test_client, store):
    upload_chunk(test_client, "abc", 0, 1, b"AAA")
    store.compose_error = StoreError("compose_object failed: EntityTooSmall", details={"code": "EntityTooSmall"})

    response = test_client.post(
        "/api/uploads/abc/compose",
        json={"bucket": "bkt", "object_name": "out.bin", "total_pieces": 1}
    )

    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    assert response.json()["details"]["code"] == "EntityTooSmall"
    assert store.objects("temp-bucket", "abc/") == {"abc/0": b"AAA"}

def test_compose_request_validation(test_client):
    response = test_client.post(
        "/api/uploads/abc/compose",
        json={"bucket": "", "object_name": "out.bin", "total_pieces": 0}
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
