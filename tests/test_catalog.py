"""Protocol catalog loading from YAML config."""

import logging

import pytest
import yaml

from therapeutic_nutrition.catalog import (
    ProtocolNotFoundError,
    get_protocol_catalog,
    reload_protocol_catalog,
    require_protocol,
)
from therapeutic_nutrition.rules import is_valid_when_json


def write_catalog(path, protocols):
    path.write_text(yaml.safe_dump({"protocols": protocols}), encoding="utf-8")


class TestBundledCatalog:
    def test_loads_wahls(self, config_dir):
        catalog = get_protocol_catalog(str(config_dir))
        wahls = require_protocol(catalog, "wahls_mitochondria_v1")
        assert wahls.version == "1"
        assert len(wahls.rules) == 11
        assert len(wahls.supplements) == 21
        assert catalog.adh_reference_values

    def test_rules_belong_to_protocol(self, wahls):
        assert {r.protocol_id for r in wahls.rules} == {wahls.id}

    def test_rule_templates_are_valid(self, wahls):
        for r in wahls.rules:
            assert r.when_json is None or is_valid_when_json(r.when_json), r.rule_key

    def test_rules_point_at_known_supplements(self, wahls):
        keys = {s.supplement_key for s in wahls.supplements}
        assert {r.supplement_key for r in wahls.rules} <= keys


class TestCatalogCache:
    def test_cached_until_reload(self, tmp_path):
        path = tmp_path / "therapeutic_protocols.yaml"
        write_catalog(path, [{"id": "a", "protocol_key": "a_v1", "name_nl": "A"}])
        assert get_protocol_catalog(str(tmp_path)).get("a_v1") is not None

        write_catalog(path, [{"id": "b", "protocol_key": "b_v1", "name_nl": "B"}])
        assert get_protocol_catalog(str(tmp_path)).get("b_v1") is None

        reload_protocol_catalog()
        catalog = get_protocol_catalog(str(tmp_path))
        assert catalog.get("b_v1") is not None
        assert catalog.get("a_v1") is None

    def test_missing_file_is_empty_catalog(self, tmp_path):
        catalog = get_protocol_catalog(str(tmp_path))
        assert catalog.protocols == []

    def test_missing_file_logs_warning(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING, logger="therapeutic_nutrition.config"):
            get_protocol_catalog(str(tmp_path))
        assert "Protocol catalog not found" in caplog.text
        assert str(tmp_path) in caplog.text


    def test_unknown_protocol(self, tmp_path):
        with pytest.raises(ProtocolNotFoundError, match="Unknown therapeutic protocol: x"):
            require_protocol(get_protocol_catalog(str(tmp_path)), "x")
