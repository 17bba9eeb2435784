"""Static checks on how the domain packages depend on each other."""

import ast
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
ROUTERS = ROOT / "routers"

DOMAINS = ["auth", "wallet", "content", "support", "notifications", "admin"]

# admin is exempt
USER_MODEL_FORBIDDEN = ["wallet", "content", "support", "notifications"]

SHARED_ROUTER_MODULES = {"routers.dependencies"}


def _parse(path):
    return ast.parse(path.read_text(), filename=str(path))


def _imports(tree):
    """Yield (module, node) for every import statement in the tree."""
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                yield alias.name, node
        elif isinstance(node, ast.ImportFrom) and node.module:
            yield node.module, node


def _domain_files(domain):
    return sorted((ROUTERS / domain).rglob("*.py"))


@pytest.mark.parametrize("domain", DOMAINS)
def test_domain_has_router_layers(domain):
    for name in ("api.py", "service.py", "repository.py", "schemas.py"):
        assert (ROUTERS / domain / name).is_file(), f"routers/{domain}/{name} missing"


@pytest.mark.parametrize("domain", DOMAINS)
def test_domain_imports_no_other_domain(domain):
    """Cross-domain calls go through `core.users`, `core.payments` or `core.notifications`."""
    own_prefix = f"routers.{domain}"
    violations = []
    for path in _domain_files(domain):
        for module, _ in _imports(_parse(path)):
            if not module.startswith("routers."):
                continue
            if module in SHARED_ROUTER_MODULES:
                continue
            if module == own_prefix or module.startswith(own_prefix + "."):
                continue
            violations.append(f"{path.relative_to(ROOT)}: {module}")

    assert not violations, "Cross-domain imports detected:\n" + "\n".join(violations)


@pytest.mark.parametrize("domain", USER_MODEL_FORBIDDEN)
def test_domain_does_not_import_user_model(domain):
    """`User` belongs to auth; other domains resolve users through `core.users`."""
    violations = []
    for path in _domain_files(domain):
        for module, node in _imports(_parse(path)):
            if module == "models" and isinstance(node, ast.ImportFrom):
                if any(alias.name == "User" for alias in node.names):
                    violations.append(str(path.relative_to(ROOT)))

    assert not violations, "Use core.users instead of importing User:\n" + "\n".join(violations)


def test_core_facades_import_domains_lazily():
    """core modules import routers only inside functions."""
    violations = []
    for path in sorted((ROOT / "core").glob("*.py")):
        tree = _parse(path)
        for node in tree.body:
            if isinstance(node, (ast.Import, ast.ImportFrom)):
                names = [a.name for a in node.names] if isinstance(node, ast.Import) else [node.module or ""]
                if any(name.startswith("routers") for name in names):
                    violations.append(str(path.relative_to(ROOT)))

    assert not violations, "core modules must import routers inside functions:\n" + "\n".join(violations)
