import argparse
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import requests

# The URL of the conversion service endpoint
SERVICE_URL = os.getenv("CONVERT_SERVICE_URL", "http://localhost:8000/convert/")
ALLOWED_EXTENSIONS = (".md", ".markdown")


def convert_markdown_file(path, output_path=None, service_url: str = SERVICE_URL) -> Dict[str, Any]:
    """
    Uploads a Markdown file to the conversion service and saves the returned presentation.

    Args:
        path: The Markdown file to convert.
        output_path: Where to write the .pptx file. Defaults to the input path with a .pptx suffix.
        service_url: The conversion endpoint.

    Returns:
        A dictionary with "status" and either "file_path" or "message".
    """
    path = Path(path)
    if path.suffix.lower() not in ALLOWED_EXTENSIONS:
        return {"status": "error", "message": "Please choose a Markdown (.md) file."}

    output_path = Path(output_path) if output_path else path.with_suffix(".pptx")
    print(f"INFO: Uploading {path} to {service_url}...")

    try:
        with path.open("rb") as f:
            files = {"file": (path.name, f, "text/markdown")}
            response = requests.post(service_url, files=files, timeout=60)
        response.raise_for_status()  # Raise an exception for HTTP errors (4xx or 5xx)

        output_path.write_bytes(response.content)
        print(f"INFO: Presentation written to {output_path}")
        return {"status": "success", "file_path": str(output_path)}

    except requests.exceptions.RequestException as e:
        error_detail = _error_detail(e.response) if e.response is not None else str(e)
        status = e.response.status_code if e.response is not None else 'N/A'
        print(f"ERROR: The conversion service returned an error. Status: {status}. Detail: {error_detail}")
        return {"status": "error", "message": f"The conversion failed. Detail: {error_detail}"}
    except OSError as e:
        print(f"ERROR: Could not read or write a file: {e}")
        return {"status": "error", "message": f"File error: {e}"}


def _error_detail(response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text
    if isinstance(data, dict) and "detail" in data:
        return str(data["detail"])
    return response.text


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="md2pptx",
        description="Convert a Markdown file into a PowerPoint presentation via the conversion service.",
    )
    parser.add_argument("path", help="Markdown file to convert.")
    parser.add_argument("--out", "-o", default=None, help="Output .pptx path.")
    parser.add_argument("--url", default=SERVICE_URL, help=f"Conversion endpoint. Default: {SERVICE_URL}")
    args = parser.parse_args(argv)

    result = convert_markdown_file(args.path, args.out, service_url=args.url)
    return 0 if result["status"] == "success" else 1


if __name__ == "__main__":
    sys.exit(main())
