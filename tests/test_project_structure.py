"""Basic project scaffolding tests."""

import importlib


def test_package_importable() -> None:
    """Verify the top-level package is importable."""
    import broadside  # noqa: F401  (import used to ensure availability)

    assert broadside.__version__


def test_submodules_exist() -> None:
    modules = [
        "broadside.config",
        "broadside.engine.grid",
        "broadside.engine.placement",
        "broadside.engine.shots",
        "broadside.engine.game",
        "broadside.ai.targeting",
        "broadside.telemetry",
        "broadside.cli",
    ]

    for module in modules:
        assert importlib.import_module(module) is not None
