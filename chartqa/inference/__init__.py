from chartqa.inference.client_base import BaseInferenceClient
from chartqa.inference.factory import InferenceClientFactory
from chartqa.inference.json_recovery import safe_parse_json
from chartqa.inference.retry import RetryingInvoker, RetryPolicy

__all__ = [
    "BaseInferenceClient",
    "InferenceClientFactory",
    "RetryPolicy",
    "RetryingInvoker",
    "safe_parse_json",
]
