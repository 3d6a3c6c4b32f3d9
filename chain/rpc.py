"""JSON-RPC client for a Solana cluster endpoint."""
import logging
from typing import Any, Optional

import requests

logger = logging.getLogger(__name__)

class RPCError(Exception):
    """Base exception for RPC errors"""
    def __init__(self, message: str, code: Optional[int] = None, method: Optional[str] = None):
        self.code = code
        self.method = method
        super().__init__(f"RPC Error [{code}] in {method}: {message}" if code else message)

class NodeConnectionError(RPCError):
    """Raised when the endpoint cannot be reached or answers garbage"""
    pass

class ChainRPCError(RPCError):
    """Error object returned by the cluster.

    Common error codes:
    -32002 - Transaction simulation failed
    -32003 - Transaction signature verification failure
    -32004 - Block not available for slot
    -32005 - Node is unhealthy
    -32007 - Slot skipped
    -32602 - Invalid params
    """
    ERROR_MESSAGES = {
        -32002: "Transaction simulation failed",
        -32003: "Transaction signature verification failure",
        -32004: "Block not available for slot",
        -32005: "Node is unhealthy",
        -32007: "Slot skipped",
        -32602: "Invalid params",
    }

    def __init__(self, message: str, code: int, method: str):
        standard_msg = self.ERROR_MESSAGES.get(code, "Unknown error")
        full_msg = f"{standard_msg} - {message}" if message != standard_msg else message
        super().__init__(full_msg, code, method)

class RPCMethod:
    """Descriptor class for RPC methods"""
    def __init__(self, method_name: str):
        self.method_name = method_name

    def __get__(self, obj, objtype=None):
        if obj is None:
            return self

        def caller(*args) -> Any:
            return obj._call_method(self.method_name, *args)

        return caller

class SolanaRPC:
    """Solana JSON-RPC client"""

    def __init__(self, url: Optional[str] = None, session: Optional[requests.Session] = None, timeout: float = 10):
        """Initialize RPC client.

        Args:
            url: Cluster endpoint. Defaults to rpc_url from settings.
            session: Optional requests session
            timeout: Request timeout in seconds
        """
        if url is None:
            from config import settings_conf
            url = settings_conf['rpc_url']

        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers['content-type'] = 'application/json'

        # Request ID counter
        self._request_id = 0

    def _get_request_id(self) -> int:
        """Get unique request ID"""
        self._request_id += 1
        return self._request_id

    def _call_method(self, method: str, *args) -> Any:
        """Make an RPC call

        Args:
            method: RPC method name
            *args: Method arguments

        Returns:
            The `result` member of the response

        Raises:
            NodeConnectionError: Endpoint unreachable or response malformed
            ChainRPCError: Endpoint returned an error object
        """
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": list(args),
            "id": self._get_request_id()
        }

        try:
            response = self.session.post(self.url, json=payload, timeout=self.timeout)
            result = response.json()

            if result.get('error') is not None:
                error = result['error']
                raise ChainRPCError(
                    error.get('message', 'Unknown error'),
                    error.get('code', -1),
                    method
                )

            response.raise_for_status()
            return result['result']

        except requests.exceptions.Timeout as e:
            raise NodeConnectionError(
                f"Request timed out after {self.timeout} seconds"
            ) from e
        except requests.exceptions.ConnectionError as e:
            raise NodeConnectionError(
                f"Failed to connect to RPC endpoint at {self.url}"
            ) from e
        except requests.exceptions.RequestException as e:
            raise NodeConnectionError(
                f"Request failed: {str(e)}"
            ) from e
        except (KeyError, ValueError, AttributeError) as e:
            raise NodeConnectionError(
                f"Invalid response format: {str(e)}"
            ) from e

    getLatestBlockhash = RPCMethod('getLatestBlockhash')
    getSignatureStatuses = RPCMethod('getSignatureStatuses')
    getAccountInfo = RPCMethod('getAccountInfo')
    getBalance = RPCMethod('getBalance')

    def account_exists(self, address: str) -> bool:
        """Return True if the cluster holds an account at this address."""
        result = self.getAccountInfo(address, {'encoding': 'base64'})
        return bool(result and result.get('value'))

    def latest_blockhash(self, commitment: str = 'confirmed') -> str:
        """Fetch the most recent blockhash."""
        result = self.getLatestBlockhash({'commitment': commitment})
        return result['value']['blockhash']

    def signature_status(self, signature: str) -> Optional[dict]:
        """Fetch the status of one signature, searching the full history."""
        result = self.getSignatureStatuses([signature], {'searchTransactionHistory': True})
        statuses = result.get('value') or [None]
        return statuses[0]
