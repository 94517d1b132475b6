"""
Chat attachment handling: Solidity summaries, image analysis and
blockchain-relevance screening for text files.
"""

import base64
import binascii
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

from ..types import AttachedFile
from .gateway import LLMGateway
from .postprocess import clean_markdown
from .prompts import file_analysis_prompt, image_analysis_prompt, solidity_audit_prompt

logger = logging.getLogger(__name__)

BLOCKCHAIN_FILE_KEYWORDS = (
    "blockchain", "ethereum", "contract", "web3", "token", "0x", "wallet",
    "solidity", "nft", "defi",
)

NOT_BLOCKCHAIN_REPLY = (
    "❌ Not Blockchain-Related\n\n"
    "I can only analyze blockchain, cryptocurrency, and Web3-related files. "
    "The file \"{name}\" doesn't appear to contain blockchain-related content.\n\n"
    "I can help with:\n"
    "• Solidity smart contracts (.sol)\n"
    "• Transaction receipts (images)\n"
    "• Wallet screenshots (images)\n"
    "• Blockchain configuration files\n"
    "• Web3 documentation\n"
    "• NFT metadata"
)

FILE_ANALYSIS_FAILED = "⚠️ I couldn't analyze \"{name}\" right now. Please try again in a moment. 🙏"

# Bound on file text forwarded to the model.
MAX_FILE_CHARS = 20000

_PRAGMA_RE = re.compile(r"^\s*pragma\s+solidity[^;]*;?", re.MULTILINE)
_CONTRACT_NAME_RE = re.compile(r"^(?!\s*//)\s*(?:abstract\s+)?contract\s+(\w+)", re.MULTILINE)


@dataclass
class SolidityReport:
    """Static facts pulled out of Solidity source without compiling it."""

    file_name: str
    pragma: Optional[str] = None
    contract_name: Optional[str] = None
    functions: int = 0
    events: int = 0
    modifiers: int = 0
    has_constructor: bool = False
    uses_openzeppelin: bool = False
    has_ownable: bool = False
    has_reentrancy_guard: bool = False
    has_payable: bool = False
    security_notes: List[str] = field(default_factory=list)

    def render(self) -> str:
        lines = [
            f"📜 Solidity Contract Analysis: {self.file_name}",
            "",
            f"Compiler Version: {self.pragma or 'Not specified'}",
            f"Contract Name: {self.contract_name or 'Unknown'}",
            "",
            "Structure:",
            f"• Functions: {self.functions}",
            f"• Events: {self.events}",
            f"• Modifiers: {self.modifiers}",
            f"• Has Constructor: {'✅' if self.has_constructor else '❌'}",
            "",
            "Features Detected:",
        ]
        features = []
        if self.uses_openzeppelin:
            features.append("• ✅ Uses OpenZeppelin libraries")
        if self.has_ownable:
            features.append("• ✅ Implements Ownable (access control)")
        if self.has_reentrancy_guard:
            features.append("• ✅ Protected against reentrancy attacks")
        if self.has_payable:
            features.append("• ✅ Can receive ETH (payable functions)")
        lines.extend(features or ["• None detected"])
        lines.append("")
        lines.append("Security Notes:")
        lines.extend(self.security_notes or ["• No obvious red flags from static checks"])
        return "\n".join(lines)


def is_solidity(file: AttachedFile, text: str) -> bool:
    return file.name.lower().endswith(".sol") or "pragma solidity" in text or "contract " in text


def is_blockchain_text(text: str) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in BLOCKCHAIN_FILE_KEYWORDS)


def decode_text(data: str) -> str:
    """Return file text, decoding ``data:...;base64,`` URLs when present."""

    if not data.startswith("data:"):
        return data
    header, _, payload = data.partition(",")
    if ";base64" not in header:
        return payload
    try:
        return base64.b64decode(payload).decode("utf-8", errors="replace")
    except (binascii.Error, ValueError):
        logger.info("Attachment is not valid base64, treating it as text")
        return payload


def analyze_solidity(source: str, file_name: str) -> SolidityReport:
    pragma = _PRAGMA_RE.search(source)
    contract = _CONTRACT_NAME_RE.search(source)
    report = SolidityReport(
        file_name=file_name,
        pragma=pragma.group(0).strip() if pragma else None,
        contract_name=contract.group(1) if contract else None,
        functions=len(re.findall(r"\bfunction\s+\w+", source)),
        events=len(re.findall(r"\bevent\s+\w+", source)),
        modifiers=len(re.findall(r"\bmodifier\s+\w+", source)),
        has_constructor="constructor" in source,
        uses_openzeppelin="@openzeppelin" in source,
        has_ownable="Ownable" in source,
        has_reentrancy_guard="ReentrancyGuard" in source,
        has_payable="payable" in source,
    )
    if report.has_payable and not report.has_reentrancy_guard:
        report.security_notes.append("• ⚠️ Contains payable functions without ReentrancyGuard")
    if "selfdestruct" in source:
        report.security_notes.append("• ⚠️ Contains selfdestruct - contract can be destroyed")
    if "delegatecall" in source:
        report.security_notes.append("• ⚠️ Uses delegatecall - potential security risk")
    if "tx.origin" in source:
        report.security_notes.append("• ⚠️ Uses tx.origin for checks - phishable authorization")
    return report


async def analyze_attachment(
    file: AttachedFile,
    user_message: str,
    gateway: LLMGateway,
) -> str:
    """Reply for a chat request that carries a file."""

    if file.is_image:
        reply = await gateway.analyze(
            image_analysis_prompt(),
            user_message,
            image=file.data,
        )
        return clean_markdown(reply) if reply else FILE_ANALYSIS_FAILED.format(name=file.name)

    text = decode_text(file.data)

    if is_solidity(file, text):
        report = analyze_solidity(text, file.name).render()
        audit = await gateway.analyze(
            solidity_audit_prompt(),
            f"Analyze this Solidity contract briefly:\n\n{text[:MAX_FILE_CHARS]}",
            temperature=0.3,
        )
        if audit:
            report += f"\n\nAI Security Analysis:\n{clean_markdown(audit)}"
        return report

    if not is_blockchain_text(text):
        return NOT_BLOCKCHAIN_REPLY.format(name=file.name)

    reply = await gateway.analyze(
        file_analysis_prompt(),
        f"File: {file.name}\nContent:\n{text[:MAX_FILE_CHARS]}\n\n"
        f"User's question: {user_message or 'Analyze this file'}",
        max_tokens=gateway.max_tokens,
    )
    return clean_markdown(reply) if reply else FILE_ANALYSIS_FAILED.format(name=file.name)


__all__ = [
    "SolidityReport",
    "analyze_attachment",
    "analyze_solidity",
    "decode_text",
    "is_blockchain_text",
    "is_solidity",
]
