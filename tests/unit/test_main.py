from unittest.mock import MagicMock, patch

import pytest

from chartqa.config.exceptions import ConfigurationError
from chartqa.main import EXIT_CONFIGURATION, EXIT_NOT_FOUND, main, parse_args
from chartqa.processor.exceptions import ChartNotFoundError


class TestParseArgs:
    def test_chart_command(self) -> None:
        args = parse_args(["chart", "--chart-id", "C-1", "--no-ai", "--max-concurrency", "3"])
        assert args.command == "chart"
        assert args.chart_id == "C-1"
        assert args.patient_id is None
        assert args.no_ai is True
        assert args.force_reextract is False
        assert args.max_concurrency == 3

    def test_chart_requires_exactly_one_target(self) -> None:
        with pytest.raises(SystemExit):
            parse_args(["chart"])
        with pytest.raises(SystemExit):
            parse_args(["chart", "--chart-id", "C-1", "--patient-id", "P-1"])

    def test_extract_command(self) -> None:
        args = parse_args(["extract", "--file-ref", "uploads/a.pdf", "--kind", "pdf"])
        assert args.file_ref == "uploads/a.pdf"
        assert args.kind == "pdf"
        assert args.frames_json is None


class TestMain:
    @patch("chartqa.main.close_pool")
    @patch("chartqa.main.init_pool")
    @patch("chartqa.main.build_chart_runner")
    def test_chart_prints_report(
        self,
        mock_build: MagicMock,
        _mock_init: MagicMock,
        mock_close: MagicMock,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        report = MagicMock()
        report.to_payload.return_value = {"chartId": "C-1", "overallQAScore": 91}
        mock_build.return_value.run.return_value = report

        assert main(["chart", "--chart-id", "C-1"]) == 0

        assert '"overallQAScore": 91' in capsys.readouterr().out
        request = mock_build.return_value.run.call_args[0][0]
        assert request.chart_id == "C-1"
        assert request.include_ai_analysis is True
        mock_close.assert_called_once()

    @patch("chartqa.main.close_pool")
    @patch("chartqa.main.init_pool")
    @patch("chartqa.main.build_chart_runner")
    def test_chart_not_found_exit_code(
        self, mock_build: MagicMock, _mock_init: MagicMock, mock_close: MagicMock
    ) -> None:
        mock_build.return_value.run.side_effect = ChartNotFoundError("No documents found")
        assert main(["chart", "--chart-id", "C-404"]) == EXIT_NOT_FOUND
        mock_close.assert_called_once()

    @patch("chartqa.main.close_pool")
    @patch("chartqa.main.init_pool")
    @patch("chartqa.main.build_chart_runner")
    def test_configuration_error_exit_code(
        self, mock_build: MagicMock, _mock_init: MagicMock, mock_close: MagicMock
    ) -> None:
        mock_build.side_effect = ConfigurationError("INFERENCE_API_KEY is not set")
        assert main(["chart", "--patient-id", "P-1"]) == EXIT_CONFIGURATION
        mock_close.assert_called_once()

    @patch("chartqa.main.ContentExtractorFactory")
    @patch("chartqa.main.InferenceClientFactory")
    def test_extract_prints_response(
        self,
        _mock_inference: MagicMock,
        mock_factory: MagicMock,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        result = MagicMock()
        result.to_response.return_value = {"content": "text", "extracted": True}
        mock_factory.create.return_value.extract.return_value = result

        assert main(["extract", "--file-ref", "uploads/a.pdf"]) == 0

        assert '"extracted": true' in capsys.readouterr().out
        request = mock_factory.create.return_value.extract.call_args[0][0]
        assert request.file_ref == "uploads/a.pdf"
        assert request.client_frames == []
