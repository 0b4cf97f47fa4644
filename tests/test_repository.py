# tests/test_repository.py
from backend.lib.repository import LocalJsonRepository, S3Repository, CONFIG_KEY, READINGS_KEY
from backend.lib.s3_service import S3Service
from backend.lib.totalizer_core.config import add_extraction_point, default_config
from backend.lib.totalizer_core.models import EnergyReading, FlowReading
from botocore.response import StreamingBody
from botocore.exceptions import ClientError
from botocore.stub import Stubber
from datetime import datetime
import io
import json
import pytest

def test_local_defaults_when_empty(tmp_path):
    repo = LocalJsonRepository(tmp_path / "data")
    assert repo.load_config() == default_config()
    assert repo.load_readings() == []

def test_local_add_and_delete_readings(tmp_path):
    repo = LocalJsonRepository(tmp_path)
    first = repo.add_reading(EnergyReading(None, datetime(2025, 11, 1, 8), "b_64", kwh=10.0))
    second = repo.add_reading(FlowReading(None, datetime(2025, 11, 1, 9), "fit_64", m3=3.0))
    assert (first.id, second.id) == (1, 2)
    assert repo.load_readings() == [first, second]

    assert repo.delete_reading(1)
    assert not repo.delete_reading(1)
    assert repo.load_readings() == [second]

def test_local_files_mirror_data_model(tmp_path):
    repo = LocalJsonRepository(tmp_path)
    repo.add_reading(EnergyReading(None, datetime(2025, 11, 1, 8), "b_64", kwh=10.0))
    stored = json.loads((tmp_path / f"{READINGS_KEY}.json").read_text(encoding="utf-8"))
    assert stored == [{"id": 1, "date": "2025-11-01T08:00", "assetId": "b_64", "kwh": 10.0}]

def test_backup_restore_and_clear(tmp_path):
    repo = LocalJsonRepository(tmp_path)
    repo.save_config(add_extraction_point(default_config(), "pe_x", "X"))
    repo.add_reading(EnergyReading(None, datetime(2025, 11, 1, 8), "b_64", kwh=10.0))
    doc = repo.backup()

    other = LocalJsonRepository(tmp_path / "other")
    assert other.restore(doc) == 1
    assert other.load_config().find_point("pe_x") is not None
    assert other.load_readings() == repo.load_readings()

    repo.clear()
    assert repo.load_readings() == []
    assert repo.load_config() == default_config()

def test_restore_rejects_invalid_document(tmp_path):
    repo = LocalJsonRepository(tmp_path)
    repo.add_reading(EnergyReading(None, datetime(2025, 11, 1, 8), "b_64", kwh=10.0))
    with pytest.raises(ValueError):
        repo.restore({"readings": []})
    # nothing was overwritten
    assert len(repo.load_readings()) == 1

@pytest.fixture
def s3(monkeypatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.delenv("AWS_SESSION_TOKEN", raising=False)
    monkeypatch.setenv("AWS_REGION", "us-east-1")
    service = S3Service(bucket_name="test-bucket")
    with Stubber(service.s3_client) as stubber:
        yield service, stubber

def body(data: bytes):
    return StreamingBody(io.BytesIO(data), len(data))

def test_s3_missing_blob_means_defaults(s3):
    service, stubber = s3
    stubber.add_client_error("get_object", service_error_code="NoSuchKey", http_status_code=404,
                             expected_params={"Bucket": "test-bucket", "Key": f"state/{READINGS_KEY}.json"})
    assert S3Repository(service).load_readings() == []
    stubber.assert_no_pending_responses()

def test_s3_round_trip(s3):
    service, stubber = s3
    doc = [{"id": 1, "date": "2025-11-01T08:00", "assetId": "fit_64", "m3": 3.0}]
    payload = json.dumps(doc, ensure_ascii=False).encode("utf-8")
    stubber.add_response("put_object", {}, {
        "Bucket": "test-bucket",
        "Key": f"state/{READINGS_KEY}.json",
        "Body": payload,
        "ContentType": "application/json",
    })
    stubber.add_response("get_object", {"Body": body(payload)},
                         {"Bucket": "test-bucket", "Key": f"state/{READINGS_KEY}.json"})

    repo = S3Repository(service)
    reading = FlowReading(1, datetime(2025, 11, 1, 8), "fit_64", m3=3.0)
    repo.save_readings([reading])
    assert repo.load_readings() == [reading]
    stubber.assert_no_pending_responses()

def test_s3_access_denied_is_raised(s3):
    service, stubber = s3
    stubber.add_client_error("get_object", service_error_code="AccessDenied", http_status_code=403)
    with pytest.raises(ClientError):
        S3Repository(service).load_config()

def test_s3_config_key(s3):
    service, _ = s3
    assert service.object_key(CONFIG_KEY) == "state/bes_v3_config.json"

def test_add_readings_keeps_ids_unique(tmp_path):
    repo = LocalJsonRepository(tmp_path)
    repo.add_reading(EnergyReading(None, datetime(2025, 11, 1, 8), "b_64", kwh=10.0))
    imported = [
        EnergyReading(1, datetime(2025, 11, 2, 8), "b_64", kwh=20.0),
        EnergyReading(5, datetime(2025, 11, 3, 8), "b_64", kwh=30.0),
        EnergyReading(5, datetime(2025, 11, 4, 8), "b_64", kwh=40.0),
        EnergyReading(None, datetime(2025, 11, 5, 8), "b_64", kwh=50.0),
    ]
    assert repo.add_readings(imported) == 4
    ids = [r.id for r in repo.load_readings()]
    assert len(ids) == len(set(ids))
    # a free id from the file is kept
    assert 5 in ids

    assert repo.delete_reading(1)
    assert [r.kwh for r in repo.load_readings()] == [20.0, 30.0, 40.0, 50.0]
