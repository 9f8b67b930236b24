# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""reqwire CLI: send one request and print the decoded response."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from ..config import HttpSettings, load_http_settings
from ..errors import FailureStatusCode, ReqwireError
from ..http.models import BodyPart, RequestContext, Response
from ..log import setup_logging
from ..response import assert_success, read_edn, read_json, read_text
from ..runtime import HttpSession

CLI_TEXT_TRUNCATION_BYTES = 4096
_DECODERS = {"text": read_text, "json": read_json, "edn": read_edn}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Send an HTTP request described on the command line")
    parser.add_argument("method", help="HTTP method: get, post, put, patch, delete or head")
    parser.add_argument("location", help="Request URL, or a path relative to --base-uri")
    parser.add_argument("--base-uri", help="Base URI the location is resolved against")
    parser.add_argument("-H", "--header", action="append", default=[], metavar="NAME:VALUE", help="Extra request header")
    parser.add_argument("-q", "--query", action="append", default=[], metavar="KEY=VALUE", help="Query parameter")
    body = parser.add_mutually_exclusive_group()
    body.add_argument("--data", help="Raw request body ('@path' reads a file)")
    body.add_argument("--json-body", help="JSON document to serialize as the request body")
    body.add_argument("--form", action="append", metavar="KEY=VALUE", help="URL-encoded form field")
    body.add_argument("--file", action="append", metavar="NAME=PATH", help="Multipart file part")
    parser.add_argument("--content-type", help="Content-Type (json, edn, text, multipart, form or a MIME string)")
    parser.add_argument("--accept", help="Accept (json, edn, text or a MIME string)")
    parser.add_argument("--timeout", type=int, metavar="MS", help="Request timeout in milliseconds")
    parser.add_argument("--http2", action="store_true", help="Request HTTP/2")
    parser.add_argument("--decode", choices=sorted(_DECODERS), default="text", help="How to decode the response body")
    parser.add_argument("--fail", action="store_true", help="Exit non-zero for responses outside 2xx")
    parser.add_argument("--ignore-ssl-errors", action="store_true", help="Skip TLS verification")
    return parser


def _split_pairs(values: list[str], sep: str, what: str) -> dict[str, str]:
    pairs: dict[str, str] = {}
    for value in values or []:
        key, found, rest = value.partition(sep)
        if not found or not key.strip():
            raise SystemExit(f"invalid {what}: {value!r} (expected {what.upper()}{sep}VALUE)")
        pairs[key.strip()] = rest.strip() if sep == ":" else rest
    return pairs


def build_context(args: argparse.Namespace) -> RequestContext:
    values: dict[str, Any] = {
        "method": args.method,
        "location": args.location,
        "base_uri": args.base_uri,
        "headers": _split_pairs(args.header, ":", "header") or None,
        "query": _split_pairs(args.query, "=", "query") or None,
        "timeout": args.timeout,
        "version": "2.0" if args.http2 else None,
    }
    if args.data is not None:
        values["body"] = Path(args.data[1:]) if args.data.startswith("@") else args.data
        values["content_type"] = args.content_type or "text"
    elif args.json_body is not None:
        values["body"] = json.loads(args.json_body)
        values["content_type"] = args.content_type or "json"
    elif args.form:
        values["body"] = _split_pairs(args.form, "=", "form")
        values["content_type"] = args.content_type or "form"
    elif args.file:
        values["body"] = [BodyPart(name=name, content=Path(path)) for name, path in _split_pairs(args.file, "=", "file").items()]
        values["content_type"] = args.content_type or "multipart"
    elif args.content_type:
        values["content_type"] = args.content_type
    if args.accept:
        values["accept"] = args.accept
    return RequestContext.from_mapping(values)


def _truncate_text_bytes(text: str, max_bytes: int) -> str:
    raw = text.encode("utf-8")
    if len(raw) <= max_bytes:
        return text
    suffix = "...[truncated]"
    keep = max_bytes - len(suffix.encode("utf-8"))
    if keep <= 0:
        return suffix.encode("utf-8")[:max_bytes].decode("utf-8", errors="ignore")
    return raw[:keep].decode("utf-8", errors="ignore") + suffix


def _print_response(response: Response, decode: str) -> None:
    print(f"HTTP {response.status_code} {response.content_type or '-'}")
    body = response.body
    if decode == "json":
        json.dump(body, sys.stdout, indent=2, sort_keys=True, default=str)
        sys.stdout.write("\n")
    elif decode == "edn":
        for value in body:
            print(value)
    else:
        print(_truncate_text_bytes(str(body), CLI_TEXT_TRUNCATION_BYTES))


def main(argv: list[str] | None = None) -> int:
    setup_logging()
    parser = build_parser()
    args = parser.parse_args(argv)

    settings: HttpSettings = load_http_settings()
    if args.ignore_ssl_errors:
        settings.verify_ssl = False

    try:
        context = build_context(args)
        with HttpSession(settings=settings) as session:
            response = session.send(context)
            if args.fail:
                assert_success(response)
            response = _DECODERS[args.decode](response)
    except FailureStatusCode as exc:
        print(f"HTTP {exc.status_code}", file=sys.stderr)
        return 1
    except ReqwireError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    _print_response(response, args.decode)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
