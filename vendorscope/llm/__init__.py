# llm/__init__.py
# 分析服务适配器 / Analysis service adapters

from vendorscope.llm.chat_completions_adapter import ChatCompletionsAdapter

__all__ = ["ChatCompletionsAdapter"]
