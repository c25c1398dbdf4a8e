"""Unary Messages API call for the Claude adapter."""

from __future__ import annotations

from typing import Any, Dict

from ..base.errors import ErrorKind, ProviderError
from ..base.http import raise_for_vendor_status
from ..base.models import CallPlan, VendorReply

from .helpers import MESSAGES_PATH


class ClaudeChatMixin:
    """Mixin providing the non-streaming send path and response parsing."""

    def send(self, plan: CallPlan, request_id: str) -> VendorReply:
        response = self._client("anthropic.chat").post(
            f"{self.base_url}{MESSAGES_PATH}",
            json=self._payload(plan),
            headers=self._headers(),
            timeout=self._timeout(),
        )
        raise_for_vendor_status(response, self.provider_name, model=plan.model, request_id=request_id)
        return self._parse_message(response.json(), plan, request_id)

    def _parse_message(self, data: Dict[str, Any], plan: CallPlan, request_id: str) -> VendorReply:
        blocks = data.get("content")
        if not isinstance(blocks, list):
            raise ProviderError(
                kind=ErrorKind.SERVICE,
                message="message response had no content blocks",
                provider=self.provider_name,
                model=plan.model,
                request_id=request_id,
            )
        text = "".join(b.get("text", "") for b in blocks if isinstance(b, dict) and b.get("type") == "text")
        usage = data.get("usage") or {}
        return VendorReply(
            text=text,
            model=data.get("model") or plan.model,
            prompt_tokens=int(usage.get("input_tokens") or 0),
            completion_tokens=int(usage.get("output_tokens") or 0),
            finish_reason=data.get("stop_reason"),
        )


__all__ = ["ClaudeChatMixin"]
