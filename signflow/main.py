"""Entry point: ``signflow create`` places fields, ``signflow sign`` fills them."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys
from typing import Any

from signflow.config import ConfigError, load_config

logger = logging.getLogger("signflow")


def _write_json(data: Any, output: str | None) -> None:
    text = json.dumps(data, indent=2, ensure_ascii=False)
    if output:
        Path(output).write_text(text + "\n", encoding="utf-8")
        logger.info("Wrote %s", output)
    else:
        print(text)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="signflow", description="PDF signature field placement")
    parser.add_argument("--config", help="JSON file overriding editor settings")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    commands = parser.add_subparsers(dest="command", required=True)

    create = commands.add_parser("create", help="Place fields and build a workflow payload")
    create.add_argument("pdf", nargs="?", help="PDF to open on start")
    create.add_argument("--output", help="Write the submitted workflow payload here")

    sign = commands.add_parser("sign", help="Fill the fields of a signer document")
    sign.add_argument("document", help="JSON signer document (workflowId, signerName, pdfBase64, fields)")
    sign.add_argument("--output", help="Write the submitted values here")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        print(f"signflow: {exc}", file=sys.stderr)
        return 2

    # Qt is imported late so --help and config errors work without a display.
    from PySide6.QtWidgets import QApplication

    app = QApplication(sys.argv[:1])
    app.setApplicationName("signflow")
    app.setStyle("Fusion")

    if args.command == "create":
        from signflow.ui.main_window import MainWindow

        window = MainWindow(config=config, submit_workflow=lambda payload: _write_json(payload, args.output))
        if args.pdf:
            window.load_file(args.pdf)
    else:
        from signflow.state.filling import SignerDocument, SignerDocumentError
        from signflow.ui.signing_window import SigningWindow

        try:
            response = json.loads(Path(args.document).read_text(encoding="utf-8"))
            document = SignerDocument.from_response(response)
        except (OSError, json.JSONDecodeError, SignerDocumentError) as exc:
            print(f"signflow: cannot read signer document: {exc}", file=sys.stderr)
            return 2

        def submit(workflow_id: str, signer_name: str, values: dict[str, str]) -> None:
            _write_json(
                {"workflowId": workflow_id, "signerName": signer_name, "fields": values},
                args.output,
            )

        window = SigningWindow(document, submit_fill_and_sign=submit, config=config)

    window.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
