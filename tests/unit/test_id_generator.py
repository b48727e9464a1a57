"""Tests for the Snowflake-style ID generator."""
import pytest

from src.bm_common.id_generator import ID_WIDTH, SnowflakeIdGenerator, generate_id


class TestSnowflakeIdGenerator:
    def test_ids_are_unique(self) -> None:
        gen = SnowflakeIdGenerator()
        ids = {gen.next_int() for _ in range(5000)}
        assert len(ids) == 5000

    def test_ids_strictly_increase(self) -> None:
        gen = SnowflakeIdGenerator()
        ids = [gen.next_int() for _ in range(1000)]
        assert ids == sorted(ids)

    def test_string_ids_are_fixed_width(self) -> None:
        gen = SnowflakeIdGenerator()
        assert all(len(gen.next_id()) == ID_WIDTH for _ in range(10))

    def test_string_order_matches_generation_order(self) -> None:
        gen = SnowflakeIdGenerator(machine_id=3)
        ids = [gen.next_id() for _ in range(1000)]
        assert ids == sorted(ids)

    def test_invalid_machine_id(self) -> None:
        with pytest.raises(ValueError):
            SnowflakeIdGenerator(machine_id=1024)

    def test_clock_step_back_keeps_order(self, monkeypatch: pytest.MonkeyPatch) -> None:
        gen = SnowflakeIdGenerator()
        first = gen.next_int()
        monkeypatch.setattr(gen, "_current_ms", lambda: gen._last_timestamp_ms - 50)
        assert gen.next_int() > first

    def test_module_helper(self) -> None:
        a, b = generate_id(), generate_id()
        assert a < b
