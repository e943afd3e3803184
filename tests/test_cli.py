import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from traffic_spec.cli import main
from traffic_spec.errors import SchemaInferenceError

FIXTURES = Path(__file__).parent / "fixtures"


def _gen_spec(tmp_path: Path, *captures: str, extra_args: tuple = ()):
    runner = CliRunner()
    return runner.invoke(main, [
        "gen-spec", *[str(FIXTURES / c) for c in captures],
        "-o", str(tmp_path / "spec.json"),
        "--config", str(FIXTURES / "config.yaml"),
        *extra_args,
    ])


class TestCliGenSpec:
    def test_writes_all_outputs(self, tmp_path):
        result = _gen_spec(tmp_path, "capture.har")

        assert result.exit_code == 0, result.output
        for name in ("spec.json", "spec.json.yaml", "examples.json", "examples.json.yaml",
                     "path-list.txt", "method-list.txt"):
            assert (tmp_path / name).exists(), name

    def test_reports_counts(self, tmp_path):
        result = _gen_spec(tmp_path, "capture.har", "capture_extra.har")

        assert result.exit_code == 0, result.output
        assert "Network requests found in capture file(s): 12" in result.output
        assert "Skipped 1 unparseable bodies." in result.output
        assert "Paths created: 3" in result.output
        assert "Operations created: 5" in result.output

    def test_reports_base_path_mismatch(self, tmp_path):
        result = _gen_spec(tmp_path, "capture.har")
        assert "apiBasePath mismatch: https://other.host/api/v1/things" in result.output
        assert "cdn" not in result.output

    def test_path_list(self, tmp_path):
        _gen_spec(tmp_path, "capture.har")
        lines = (tmp_path / "path-list.txt").read_text().splitlines()
        assert lines == ["/accounts/", "/accounts/{account_id}/", "/accounts/{account_id}/avatar/"]

    def test_base_path_override(self, tmp_path):
        result = _gen_spec(tmp_path, "capture.har", extra_args=("--base-path", "other.host"))

        assert result.exit_code == 0, result.output
        spec = json.loads((tmp_path / "spec.json").read_text())
        assert list(spec["paths"]) == ["/api/v1/things"]

    def test_config_from_environment(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(
            main,
            ["gen-spec", str(FIXTURES / "capture.har"), "-o", str(tmp_path / "spec.json")],
            env={"TRAFFIC_SPEC_CONFIG": str(FIXTURES / "config.yaml")},
        )
        assert result.exit_code == 0, result.output
        assert (tmp_path / "spec.json").exists()

    def test_invalid_capture_writes_nothing(self, tmp_path):
        result = _gen_spec(tmp_path, "invalid.har")

        assert result.exit_code == 1
        assert "invalid json" in result.output
        assert not (tmp_path / "spec.json").exists()

    @pytest.mark.parametrize("name", ["examples.json", "path-list.txt"])
    def test_output_cannot_clash_with_companion_files(self, tmp_path, name):
        runner = CliRunner()
        result = runner.invoke(main, [
            "gen-spec", str(FIXTURES / "capture.har"),
            "-o", str(tmp_path / name),
            "--config", str(FIXTURES / "config.yaml"),
        ])
        assert result.exit_code == 1
        assert "reserved" in result.output
        assert not (tmp_path / name).exists()

    def test_invalid_config_pattern(self, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text("api_base_path: api.x\npath_replace:\n  '(': x\n")
        runner = CliRunner()
        result = runner.invoke(main, [
            "gen-spec", str(FIXTURES / "capture.har"),
            "-o", str(tmp_path / "spec.json"),
            "--config", str(config),
        ])
        assert result.exit_code == 1
        assert "invalid pattern" in result.output
        assert not (tmp_path / "spec.json").exists()

    def test_not_a_har(self, tmp_path):
        result = _gen_spec(tmp_path, "not_a_har.json")
        assert result.exit_code == 1
        assert "log" in result.output

    def test_missing_config(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, [
            "gen-spec", str(FIXTURES / "capture.har"), "-o", str(tmp_path / "spec.json"),
        ], env={"TRAFFIC_SPEC_CONFIG": None})
        assert result.exit_code != 0


class TestCliGenSchema:
    def test_uncurated_examples_fail(self, tmp_path):
        _gen_spec(tmp_path, "capture.har")
        runner = CliRunner()
        result = runner.invoke(main, [
            "gen-schema", str(tmp_path / "examples.json"),
            "--prior", str(tmp_path / "spec.json"),
            "-o", str(tmp_path / "final.json"),
        ])

        assert result.exit_code == 1
        assert "no gexamples" in result.output
        assert "need curation" in result.output
        assert not (tmp_path / "final.json").exists()

    def test_inference_failure_writes_nothing(self, tmp_path):
        prior = tmp_path / "spec.json"
        prior.write_text(json.dumps({"openapi": "3.0.0", "paths": {}}))
        curated = tmp_path / "examples.json"
        curated.write_text(json.dumps({
            "/a/": {"get": {"request": {}, "response": {"200": {"gexample-0001": {"a": 1, "b": 2}}}}}
        }))

        runner = CliRunner()
        with patch("traffic_spec.generator.reconcile.SampleSchemaInferencer.infer",
                   side_effect=SchemaInferenceError("inference broke")):
            result = runner.invoke(main, [
                "gen-schema", str(curated), "--prior", str(prior), "-o", str(tmp_path / "final.json"),
            ])

        assert result.exit_code == 1
        assert "inference broke" in result.output
        assert not (tmp_path / "final.json").exists()

    def test_invalid_curated_file(self, tmp_path):
        prior = tmp_path / "spec.json"
        prior.write_text("{}")
        curated = tmp_path / "examples.json"
        curated.write_text("[1, 2]")

        runner = CliRunner()
        result = runner.invoke(main, [
            "gen-schema", str(curated), "--prior", str(prior), "-o", str(tmp_path / "final.json"),
        ])
        assert result.exit_code == 1

    def test_malformed_slot_is_reported(self, tmp_path):
        prior = tmp_path / "spec.json"
        prior.write_text("{}")
        curated = tmp_path / "examples.json"
        curated.write_text(json.dumps({"/a/": {"get": {"request": [], "response": {}}}}))

        runner = CliRunner()
        result = runner.invoke(main, [
            "gen-schema", str(curated), "--prior", str(prior), "-o", str(tmp_path / "final.json"),
        ])
        assert result.exit_code == 1
        assert "/a/ get request must be a mapping" in result.output
        assert not isinstance(result.exception, AttributeError)
        assert not (tmp_path / "final.json").exists()


class TestCliMerge:
    def test_merge(self, tmp_path):
        master = tmp_path / "master.json"
        master.write_text(json.dumps({"paths": {"/a/": {"get": {"summary": "master"}}}}))
        to_merge = tmp_path / "other.json"
        to_merge.write_text(json.dumps({"paths": {
            "/a/": {"get": {"summary": "other"}, "post": {"summary": "new"}},
            "/b/": {"get": {}},
        }}))
        output = tmp_path / "merged.json"

        runner = CliRunner()
        result = runner.invoke(main, ["merge", str(master), str(to_merge), "-o", str(output)])

        assert result.exit_code == 0, result.output
        merged = json.loads(output.read_text())
        assert merged["paths"]["/a/"]["get"] == {"summary": "master"}
        assert merged["paths"]["/a/"]["post"] == {"summary": "new"}
        assert list(merged["paths"]) == ["/a/", "/b/"]
        assert (tmp_path / "merged.json.yaml").exists()
