import importlib
import sys

import dotenv
import pytest


@pytest.mark.parametrize("module", ["demo", "demo_concurrent"])
def test_demo_reads_dotenv_on_import(monkeypatch, module):
    calls = []
    monkeypatch.setattr(dotenv, "load_dotenv", lambda *a, **kw: calls.append(module))
    monkeypatch.delitem(sys.modules, module, raising=False)
    importlib.import_module(module)
    assert calls == [module]
