"""Tests for ID generation and validation."""

import pytest

from rentalctl.domain.ids import TYPE_PREFIXES, generate_id, validate_id


class TestGenerateId:
    @pytest.mark.parametrize("kind", list(TYPE_PREFIXES))
    def test_prefix_and_validity(self, kind: str) -> None:
        entity_id = generate_id(kind)
        assert entity_id.startswith(TYPE_PREFIXES[kind])
        assert validate_id(entity_id, kind)

    def test_unique(self) -> None:
        assert len({generate_id("rental") for _ in range(200)}) == 200

    def test_unknown_kind(self) -> None:
        with pytest.raises(KeyError):
            generate_id("invoice")


class TestValidateId:
    @pytest.mark.parametrize(
        ("entity_id", "kind", "expected"),
        [
            ("rnt_3f9a0c1b2d4e", "rental", True),
            ("rnt_3f9a0c1b2d4e", "reservation", False),
            ("rnt_3F9A0C1B2D4E", "rental", False),
            ("rnt_3f9a0c1b2d4", "rental", False),
            ("eqp_000000000000", "equipment", True),
            ("mbr_000000000000", "nobody", False),
        ],
    )
    def test_patterns(self, entity_id: str, kind: str, expected: bool) -> None:
        assert validate_id(entity_id, kind) is expected
