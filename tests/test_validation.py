from types import SimpleNamespace

import pytest

from app.features.storage import route
from app.features.storage.validation import is_mime_type_allowed, validate_files
from app.shared.exceptions import UploadValidationError


def _file(name="a.png", content_type="image/png", size=100):
    return SimpleNamespace(filename=name, content_type=content_type, size=size)


@pytest.mark.parametrize("file_type, allowed, expected", [
    ("image/png", ["image/*"], True),
    ("image/png", ["image/jpeg"], False),
    ("image/jpeg", ["image/jpeg", "image/png"], True),
    ("application/pdf", ["image/*", "application/pdf"], True),
    ("imagex/png", ["image/*"], False),
    ("", ["image/*"], False),
])
def test_mime_type_matching(file_type, allowed, expected):
    assert is_mime_type_allowed(file_type, allowed) is expected


def test_no_files_rejected():
    policy = route(file_types=["image/*"], max_file_size=10)
    with pytest.raises(UploadValidationError) as exc:
        validate_files(policy, [])
    assert exc.value.status_code == 400
    assert exc.value.detail == "No files uploaded"


def test_too_many_files_reports_maximum():
    policy = route(file_types=["image/*"], max_file_size=1000, max_file_count=2)
    with pytest.raises(UploadValidationError) as exc:
        validate_files(policy, [_file(), _file(), _file()])
    assert exc.value.detail == "Too many files. Maximum allowed: 2"


def test_default_max_file_count_is_one():
    policy = route(file_types=["image/*"], max_file_size=1000)
    assert policy.max_file_count == 1
    with pytest.raises(UploadValidationError, match="Maximum allowed: 1"):
        validate_files(policy, [_file(), _file()])


def test_invalid_type_lists_allowed_types():
    policy = route(file_types=["image/jpeg", "image/gif"], max_file_size=1000)
    with pytest.raises(UploadValidationError) as exc:
        validate_files(policy, [_file(content_type="image/png")])
    assert exc.value.detail == "Invalid file type: image/png. Allowed: image/jpeg, image/gif"


def test_size_limit_is_inclusive():
    policy = route(file_types=["image/*"], max_file_size=500)
    validate_files(policy, [_file(size=500)])

    with pytest.raises(UploadValidationError) as exc:
        validate_files(policy, [_file(name="big.png", size=501)])
    assert exc.value.detail == 'File "big.png" exceeds maximum size of 500 bytes'


def test_first_offending_file_wins():
    policy = route(file_types=["image/png"], max_file_size=500, max_file_count=5)
    files = [
        _file(name="ok.png"),
        _file(name="huge.png", size=9999),
        _file(name="anim.gif", content_type="image/gif"),
    ]
    with pytest.raises(UploadValidationError, match="huge.png"):
        validate_files(policy, files)


def test_type_checked_before_size_for_same_file():
    policy = route(file_types=["image/png"], max_file_size=10)
    with pytest.raises(UploadValidationError, match="Invalid file type: image/gif"):
        validate_files(policy, [_file(content_type="image/gif", size=9999)])
