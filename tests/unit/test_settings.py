import logging

import pytest
from pydantic import ValidationError

from paperdb import Paper, PaperSettings, load_settings
from paperdb.logging_config import configure_logging, resolve_level
from paperdb.storage.serializer import EncryptedSerializer, PickleSerializer


def test_missing_settings_file_gives_defaults(tmp_path):
    s = load_settings(tmp_path / "nope.yml")
    assert s == PaperSettings()
    assert s.serializer == "pickle"


def test_load_settings_from_yaml(tmp_path):
    cfg = tmp_path / "paperdb.yml"
    cfg.write_text(
        "root_dir: /tmp/books\nserializer: encrypted\npassword: pw\nlog_level: debug\nfsync: false\n",
        encoding="utf-8",
    )
    s = load_settings(cfg)
    assert s.root_dir == "/tmp/books"
    assert s.serializer == "encrypted"
    assert s.fsync is False


def test_invalid_serializer_name_rejected(tmp_path):
    cfg = tmp_path / "paperdb.yml"
    cfg.write_text("serializer: xml\n", encoding="utf-8")
    with pytest.raises(ValidationError):
        load_settings(cfg)


def test_paper_from_settings(tmp_path):
    p = Paper.from_settings(PaperSettings(root_dir=str(tmp_path), log_level="INFO"))
    assert isinstance(p.serializer, PickleSerializer)
    assert p.default_path == str(tmp_path)
    assert logging.getLogger("paperdb").level == logging.INFO

    enc = Paper.from_settings(PaperSettings(serializer="encrypted", password="pw"))
    assert isinstance(enc.serializer, EncryptedSerializer)
    assert enc.default_path is None


def test_resolve_level():
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level(logging.ERROR) == logging.ERROR
    assert resolve_level("not-a-level") == logging.WARNING
    assert resolve_level(None) == logging.WARNING


def test_configure_logging_sets_package_level():
    logger = configure_logging("error")
    assert logger.name == "paperdb"
    assert logger.level == logging.ERROR
    configure_logging()
    assert logger.level == logging.WARNING
