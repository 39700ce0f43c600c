"""
Command safety validation for the command execution tool.

The CommandValidator decides whether a shell command may be queued for human
approval:
1. Deny patterns are checked first and are authoritative
2. The command must then match an allow pattern
3. Anything else is denied as "not in allowed set"

Validation is a pure function of the command string. Nothing is executed here.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Tuple

from util.logging import logger


NOT_IN_ALLOWED_SET = "not in allowed set"


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of a command validation check."""
    allowed: bool
    reason: Optional[str] = None
    category: Optional[str] = None


class CommandValidator:
    """
    Classifies shell commands as allowed or denied using ordered pattern rules.

    Deny rules are grouped by category so a denial can say what kind of
    operation was blocked. Allow rules are anchored at the start of the command
    and cover read-only inspection, DNS/network probes and text filters.
    """

    # (category, pattern) - order matters, first match wins
    DENY_PATTERNS: List[Tuple[str, str]] = [
        ("destructive_delete", r"rm\s+-rf"),
        ("privilege_escalation", r"sudo\s+"),
        ("permission_change", r"chmod\s+777"),
        ("permission_change", r"chown\s+"),
        ("account_management", r"passwd"),
        ("account_management", r"useradd"),
        ("account_management", r"userdel"),
        ("account_management", r"groupadd"),
        ("account_management", r"groupdel"),
        ("filesystem_mount", r"mount"),
        ("filesystem_mount", r"umount"),
        ("filesystem_mount", r"fdisk"),
        ("filesystem_mount", r"mkfs"),
        ("raw_device_write", r"dd\s+if="),
        ("network_listener", r"nc\s+"),
        ("network_listener", r"netcat"),
        ("shared_memory_download", r"wget\s+.*-O\s+/dev/shm"),
        ("shared_memory_download", r"curl\s+.*-o\s+/dev/shm"),
        ("system_config_write", r">\s*/etc/"),
        ("system_config_write", r">>\s*/etc/"),
        ("system_config_write", r"cat\s+>.*/etc/"),
        ("system_config_write", r"echo\s+.*>\s*/etc/"),
    ]

    ALLOW_PATTERNS: List[str] = [
        # Network and DNS probes
        r"^curl\s+",
        r"^wget\s+",
        r"^ping\s+",
        r"^nslookup\s+",
        r"^dig\s+",
        # Inspection
        r"^date",
        r"^uptime",
        r"^whoami",
        r"^pwd",
        r"^ls\s+",
        r"^cat\s+",
        # Text filters
        r"^grep\s+",
        r"^head\s+",
        r"^tail\s+",
        r"^wc\s+",
        r"^sort\s+",
        r"^uniq\s+",
        r"^cut\s+",
        r"^awk\s+",
        r"^sed\s+",
        r"^find\s+",
        # System information
        r"^which\s+",
        r"^whereis\s+",
        r"^ps\s+",
        r"^top\s*",
        r"^df\s+",
        r"^du\s+",
        r"^free\s*",
        r"^uname\s*",
        r"^hostname",
        r"^id\s*",
        r"^groups\s*",
        r"^env\s*",
        r"^printenv\s*",
        r"^history\s*",
        r"^echo\s+[^>]",
        r"^printf\s+",
    ]

    def __init__(self):
        self._deny: List[Tuple[str, Pattern]] = [
            (category, re.compile(pattern)) for category, pattern in self.DENY_PATTERNS
        ]
        self._allow: List[Pattern] = [re.compile(pattern) for pattern in self.ALLOW_PATTERNS]

    def validate(self, command: str) -> ValidationOutcome:
        """
        Validate a candidate shell command.

        Args:
            command: Raw command string as proposed by the router or the LLM

        Returns:
            ValidationOutcome with allowed flag, reason and matched deny category
        """
        for category, pattern in self._deny:
            if pattern.search(command):
                outcome = ValidationOutcome(
                    allowed=False,
                    reason=f"Command matches denied category '{category}' (pattern: {pattern.pattern})",
                    category=category
                )
                logger.log_command_validation(command, False, category)
                return outcome

        if not any(pattern.search(command) for pattern in self._allow):
            logger.log_command_validation(command, False, NOT_IN_ALLOWED_SET)
            return ValidationOutcome(allowed=False, reason=NOT_IN_ALLOWED_SET)

        logger.log_command_validation(command, True)
        return ValidationOutcome(allowed=True)
