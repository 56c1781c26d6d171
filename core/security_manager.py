# core/security_manager.py
"""
Security Manager for the Inkwell blog
Implements the security primitives the web layer relies on:
- Salted password hashing and constant-time verification
- Opaque session token generation
- Audit logging of authentication events
"""

import base64
import hmac
import logging
import secrets
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.backends import default_backend
from flask import has_request_context, request

# Configure logging
logger = logging.getLogger(__name__)
audit_logger = logging.getLogger('inkwell.audit')


@dataclass
class SecurityAuditLog:
    """Security audit log entry"""
    timestamp: datetime
    event_type: str
    user_id: Optional[str]
    source_ip: str
    resource: str
    action: str
    details: Dict[str, Any]


class SecurityManager:
    """
    Password hashing, session tokens and security event auditing
    """

    def __init__(self, app=None, iterations: int = 200000, salt_bytes: int = 16,
                 token_bytes: int = 32):
        """
        Initialize security manager

        Args:
            app: Flask application instance, used for configuration
            iterations: PBKDF2 iteration count
            salt_bytes: Size of the random salt per password
            token_bytes: Entropy of generated session tokens
        """
        self.app = app
        self.iterations = iterations
        self.salt_bytes = salt_bytes
        self.token_bytes = token_bytes

        if app is not None:
            self.iterations = app.config.get('PASSWORD_HASH_ITERATIONS', iterations)
            self.salt_bytes = app.config.get('PASSWORD_SALT_BYTES', salt_bytes)
            self.token_bytes = app.config.get('SESSION_TOKEN_BYTES', token_bytes)

        logger.info("SecurityManager initialized")

    def hash_password(self, password: str, salt: Optional[str] = None) -> Tuple[str, str]:
        """
        Hash password with secure salt

        Args:
            password: Plain text password
            salt: Optional salt (generates new if not provided)

        Returns:
            Tuple of (hashed_password, salt)
        """
        if salt is None:
            salt = secrets.token_hex(self.salt_bytes)

        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=salt.encode(),
            iterations=self.iterations,
            backend=default_backend()
        )

        hashed = base64.b64encode(kdf.derive(password.encode('utf-8'))).decode()
        return hashed, salt

    def verify_password(self, password: str, hashed_password: str, salt: str) -> bool:
        """
        Verify password against hash

        Args:
            password: Plain text password to verify
            hashed_password: Stored password hash
            salt: Password salt

        Returns:
            True if password is valid
        """
        computed_hash, _ = self.hash_password(password, salt)
        return hmac.compare_digest(hashed_password, computed_hash)

    def generate_session_token(self) -> str:
        """Opaque, URL-safe session token"""
        return secrets.token_urlsafe(self.token_bytes)

    def log_security_event(self, event_type: str, details: Dict[str, Any] = None,
                           user_id: Optional[str] = None):
        """
        Log security event for audit trail

        Args:
            event_type: Type of security event
            details: Additional event details
            user_id: Principal the event concerns, if known
        """
        in_request = has_request_context()
        log_entry = SecurityAuditLog(
            timestamp=datetime.utcnow(),
            event_type=event_type,
            user_id=user_id,
            source_ip=request.remote_addr if in_request else 'system',
            resource=request.endpoint if in_request else 'system',
            action=request.method if in_request else 'system',
            details=details or {}
        )

        audit_logger.info(
            "Security event: %s", event_type,
            extra={'audit': self._audit_log_to_dict(log_entry)}
        )

    def _audit_log_to_dict(self, log_entry: SecurityAuditLog) -> Dict[str, Any]:
        """Convert audit log entry to dictionary"""
        entry = asdict(log_entry)
        entry['timestamp'] = log_entry.timestamp.isoformat()
        return entry


def init_security_manager(app) -> SecurityManager:
    """Create the security manager and attach it to the app"""
    manager = SecurityManager(app)
    app.extensions['security_manager'] = manager
    return manager
