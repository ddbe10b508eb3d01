"""
Simple in-memory rate limiter for LLM-backed endpoints.
"""
import logging
import time
from collections import defaultdict
from typing import Dict
from fastapi import Request, HTTPException, status

from mockprep.core import config

logger = logging.getLogger(__name__)

# {client key: [timestamps]}
rate_limit_store: Dict[str, list] = defaultdict(list)


def get_client_ip(request: Request) -> str:
    """Extract client IP address from request."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # Take the first IP in the chain
        return forwarded.split(",")[0].strip()
    
    if request.client:
        return request.client.host
    
    return "unknown"


def check_rate_limit(request: Request, max_requests: int = None, window_seconds: int = None) -> None:
    """
    Check if client has exceeded rate limit.
    
    Args:
        request: FastAPI request object
        max_requests: Maximum number of requests allowed (defaults to config)
        window_seconds: Time window in seconds (defaults to config)
        
    Raises:
        HTTPException: 429 if rate limit exceeded
    """
    max_requests = max_requests or config.RATE_LIMIT_MAX_REQUESTS
    window_seconds = window_seconds or config.RATE_LIMIT_WINDOW_SECONDS

    key = f"{get_client_ip(request)}:{request.url.path}"
    now = time.time()
    
    cutoff = now - window_seconds
    rate_limit_store[key] = [
        timestamp for timestamp in rate_limit_store[key]
        if timestamp > cutoff
    ]
    
    request_count = len(rate_limit_store[key])
    
    if request_count >= max_requests:
        logger.warning(f"Rate limit exceeded for {key} ({request_count} requests in {window_seconds}s)")
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Rate limit exceeded. Maximum {max_requests} requests per {window_seconds} seconds."
        )
    
    rate_limit_store[key].append(now)
    
    logger.debug(f"Rate limit check passed for {key} ({request_count + 1}/{max_requests})")
