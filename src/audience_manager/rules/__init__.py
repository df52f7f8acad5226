"""Rule translation between workbook rows and remote population rules."""

from audience_manager.rules.codec import RuleCodec

__all__ = ["RuleCodec"]
