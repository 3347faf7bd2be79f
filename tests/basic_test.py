import importlib
import importlib.metadata as metadata
import builtins
import io

import pytest


def test_version_fallback(monkeypatch):
    # Force PackageNotFoundError
    monkeypatch.setattr(metadata, "version", lambda _: (_ for _ in ()).throw(metadata.PackageNotFoundError))

    # Fake pyproject.toml content
    fake_toml = b"[project]\nversion = '0.1.0'\n"
    monkeypatch.setattr(builtins, "open", lambda *_: io.BytesIO(fake_toml))

    # Reload the module so the fallback branch executes
    import quantfmt
    importlib.reload(quantfmt)

    assert quantfmt.__version__ == "0.1.0"


def test_lazy_public_names():
    import quantfmt
    from quantfmt.formatter.quantity_formatter import QuantityFormatter
    from quantfmt.units.registry import DEFAULT_REGISTRY

    assert quantfmt.QuantityFormatter is QuantityFormatter
    assert quantfmt.ureg is DEFAULT_REGISTRY
    assert quantfmt.QuantityType.Length == 1


def test_unknown_attribute_raises_attributeerror():
    import quantfmt
    with pytest.raises(AttributeError):
        _ = quantfmt.definitely_not_a_public_attr


def test_dir_lists_public_names():
    import quantfmt
    names = dir(quantfmt)
    assert "QuantityFormatter" in names
    assert names == sorted(names)
