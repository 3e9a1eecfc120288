"""Tests for HTML run report generation."""

import pytest

from tests.mocks import create_happy_summary
from variantbench.benchmark import load_summary
from variantbench.models import ComposedArgs, ExecutionRecord
from variantbench.report import generate_run_report


@pytest.mark.unit
class TestGenerateRunReport:
    """Test generate_run_report()."""

    @pytest.fixture
    def records(self, run_config):
        """Execution records of a failed run."""
        return [
            ExecutionRecord("fetch_ref.fai", 0, 0.0),
            ExecutionRecord(
                "variant_calling", 1, 3725.5, run_config.log_dir / "deepvariant_runtime.log"
            ),
        ]

    def test_report_contents(self, run_config, records, tmp_path):
        """Test that settings, arguments and records are rendered."""
        output = tmp_path / "run_report.html"
        composed = ComposedArgs(
            pipeline_args=("--regions", "chr20"), eval_args=("-l", "chr20")
        )

        result = generate_run_report(
            run_config, records, output, composed_args=composed, image="google/deepvariant:1.0.0"
        )

        assert result == output
        html = output.read_text(encoding="utf-8")
        assert "google/deepvariant:1.0.0" in html
        assert run_config.bam in html
        assert "<code>--regions</code>" in html
        assert "FAILED (1)" in html
        assert "62m5.500s" in html
        assert "deepvariant_runtime.log" in html
        assert "Benchmark metrics" not in html

    def test_metrics_rendered(self, run_config, records, tmp_path):
        """Test that hap.py metrics appear when a summary is given."""
        summary = load_summary(create_happy_summary(tmp_path / "happy.output"))
        output = tmp_path / "run_report.html"

        generate_run_report(run_config, records, output, summary=summary)

        html = output.read_text(encoding="utf-8")
        assert "Benchmark metrics" in html
        assert "0.998971" in html

    def test_values_escaped(self, run_config, tmp_path):
        """Test that argument values are HTML escaped."""
        output = tmp_path / "run_report.html"
        composed = ComposedArgs(pipeline_args=("--call_variants_extra_args", "<b>x</b>"))

        generate_run_report(run_config, [], output, composed_args=composed)

        html = output.read_text(encoding="utf-8")
        assert "&lt;b&gt;x&lt;/b&gt;" in html
        assert "<b>x</b>" not in html
