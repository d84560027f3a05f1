"""Testes da normalização de papéis."""

from __future__ import annotations

import pytest

from app.domain.actor import Actor, Role, UnknownRoleError, normalize_role


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("admin", Role.ADMIN),
        ("Administrador", Role.ADMIN),
        (" ADMIN ", Role.ADMIN),
        ("motorista", Role.DRIVER),
        ("driver", Role.DRIVER),
        ("embarcador", Role.SHIPPER),
        ("client", Role.SHIPPER),
        ("agenciador", Role.AGENT),
        ("transportador", Role.AGENT),
    ],
)
def test_normalize_role_aliases(raw: str, expected: Role) -> None:
    assert normalize_role(raw) is expected


def test_normalize_role_folds_accents() -> None:
    assert normalize_role("Administradór") is Role.ADMIN


@pytest.mark.parametrize("raw", [None, "", "   ", "superuser"])
def test_unknown_role_rejected(raw: str | None) -> None:
    with pytest.raises(UnknownRoleError):
        normalize_role(raw)


def test_actor_flags() -> None:
    assert Actor(id=1, role=Role.ADMIN).is_admin is True
    assert Actor(id=2, role=Role.DRIVER).is_driver is True
    assert Actor(id=3, role=Role.AGENT).is_admin is False
