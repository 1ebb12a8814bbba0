"""
Transport adapter contract.

An adapter lets a host transport shape requests and responses around the
dispatcher without the dispatcher knowing which transport it is serving.
All three hooks are optional; the defaults pass values through unchanged.
"""

from typing import Any, Dict

from assistants_gateway.errors import McpError, RequestId, create_error_response, utc_timestamp


class TransportAdapter:
    name = "generic"

    def preprocess_request(self, request: Dict[str, Any]) -> Dict[str, Any]:
        return request

    def postprocess_response(self, response: Dict[str, Any]) -> Dict[str, Any]:
        return response

    def format_error(self, error: McpError, request_id: RequestId) -> Dict[str, Any]:
        """Error envelope with the transport name and a timestamp folded into ``data``."""
        data: Dict[str, Any] = dict(error.data) if isinstance(error.data, dict) else {}
        if error.data is not None and not isinstance(error.data, dict):
            data["detail"] = error.data
        data.setdefault("transport", self.name)
        data.setdefault("timestamp", utc_timestamp())
        return create_error_response(request_id, error.code, error.message, data)
