import json
import sys
import os
from http.server import BaseHTTPRequestHandler

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from celebrity_corpus.catalog import LOOKUPS, search_ebooks
from celebrity_corpus.payloads import (
    celebrity_from_dict,
    load_candidates,
    load_corpus,
    result_to_dict,
)
from celebrity_corpus.runner import recommend_paid_resources


class handler(BaseHTTPRequestHandler):
    def _send_json(self, status: int, payload: dict):
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Access-Control-Allow-Origin", "*")
        self.end_headers()
        self.wfile.write(json.dumps(payload, ensure_ascii=False).encode("utf-8"))

    def do_POST(self):
        content_length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(content_length)

        try:
            data = json.loads(body)
        except json.JSONDecodeError:
            self._send_json(400, {"error": "Invalid JSON body"})
            return

        if not isinstance(data, dict):
            self._send_json(400, {"error": "Body must be a JSON object"})
            return

        try:
            contents = load_corpus(data.get("contents", []))
            if data.get("candidates") is not None:
                candidates = load_candidates(data["candidates"])
            elif data.get("celebrity"):
                # No candidates supplied: search the ebook catalog for the subject
                candidates = search_ebooks(celebrity_from_dict(data["celebrity"]))
            else:
                candidates = []
        except ValueError as e:
            self._send_json(400, {"error": str(e)})
            return

        lookups = LOOKUPS if data.get("lookup_prices") else None
        result, coverage = recommend_paid_resources(contents, candidates, lookups=lookups)
        self._send_json(200, result_to_dict(result, coverage))

    def do_OPTIONS(self):
        self.send_response(204)
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Methods", "POST, OPTIONS")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.end_headers()
