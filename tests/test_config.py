from pathlib import Path

import pytest
from pydantic import ValidationError

from lazyholder import NullableLazy, SynchronizedLazy, is_proxy
from lazyholder.config import Config, LazyFactory
from lazyholder.holder import Lazy


def test_defaults_without_config_file(tmp_path: Path):
    config = Config.load(tmp_path / "missing.yaml", environ={})

    assert config.logging.log_level == "INFO"
    assert config.developer.debug_mode is False
    assert config.holders.synchronized is False
    assert config.holders.allow_none is False


def test_flat_keys_load_from_yaml(tmp_path: Path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        """
log_level: debug
log_file: {log_file}
debug_mode: true
synchronized: true
allow_none: true
""".strip().format(log_file=tmp_path / "out.log"),
        encoding="utf-8",
    )

    config = Config.load(config_file, environ={})

    assert config.logging.log_level == "DEBUG"
    assert config.logging.log_file == tmp_path / "out.log"
    assert config.developer.debug_mode is True
    assert config.holders.synchronized is True
    assert config.holders.allow_none is True


def test_nested_sections_load_from_yaml(tmp_path: Path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        """
holders:
  synchronized: true
developer:
  debug_mode: false
""".strip(),
        encoding="utf-8",
    )

    config = Config.load(config_file, environ={})

    assert config.holders.synchronized is True
    assert config.holders.allow_none is False
    assert config.developer.debug_mode is False


def test_unknown_keys_are_rejected(tmp_path: Path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("cloud_enabled: true\n", encoding="utf-8")

    with pytest.raises(ValidationError):
        Config.load(config_file, environ={})


def test_non_mapping_file_is_rejected(tmp_path: Path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("- one\n- two\n", encoding="utf-8")

    with pytest.raises(ValueError):
        Config.load(config_file, environ={})


def test_environment_overrides_file(tmp_path: Path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("log_level: INFO\ndebug_mode: false\n", encoding="utf-8")

    config = Config.load(
        config_file,
        environ={"LAZYHOLDER_LOG_LEVEL": "warning", "LAZYHOLDER_DEBUG": "1"},
    )

    assert config.logging.log_level == "WARNING"
    assert config.developer.debug_mode is True


def test_factory_uses_plain_holders_by_default():
    factory = LazyFactory()

    holder = factory.create(object)

    assert isinstance(holder, Lazy)
    assert not isinstance(holder, NullableLazy)


def test_factory_applies_holder_defaults():
    config = Config.from_mapping({"synchronized": True, "allow_none": True})
    factory = LazyFactory(config)

    holder = factory.create(lambda: None)

    assert isinstance(holder, SynchronizedLazy)
    assert isinstance(holder.inner, NullableLazy)
    assert holder.get() is None
    assert holder.has_value() is True


def test_factory_hidden_masks_holder():
    from collections.abc import Sized

    for synchronized in (False, True):
        factory = LazyFactory(Config.from_mapping({"synchronized": synchronized}))
        proxy = factory.hidden(Sized, lambda: [1, 2])

        assert is_proxy(proxy)
        assert len(proxy) == 2
