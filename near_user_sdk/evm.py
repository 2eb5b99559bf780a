"""
Call convention of the embedded EVM contract.

The EVM runs as an ordinary contract account. Solidity contracts are deployed
into it with ``deploy_code`` and called with ``run_command``; both take a
JSON argument object, and ``run_command`` returns the ABI-encoded output as a
hex string wrapped in JSON quotes.
"""
import json
import logging
from typing import Any, Optional, Sequence, Tuple

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from web3 import Web3

from .exceptions import ErrorKind, UserError
from .models import FinalExecutionOutcomeView
from .user.base import User

logger = logging.getLogger(__name__)

DEFAULT_EVM_ACCOUNT = "near_evm"
DEFAULT_GAS = 1_000_000_000


class EvmCallError(UserError):
    """Raised when an EVM call did not succeed or returned unreadable output."""
    kind = ErrorKind.REJECTED

    def __init__(self, message: str, outcome: Optional[FinalExecutionOutcomeView] = None):
        super().__init__(message, data=outcome.status.to_wire() if outcome else None)
        self.outcome = outcome


def sender_name_to_eth_address(account_id: str) -> str:
    """EVM address of an account: last 20 bytes of keccak256 of its name."""
    return Web3.to_checksum_address(Web3.keccak(text=account_id)[12:])


def function_selector(name: str, arg_types: Sequence[str] = ()) -> bytes:
    return Web3.keccak(text=f"{name}({','.join(arg_types)})")[:4]


def encode_call(name: str, arg_types: Sequence[str] = (), args: Sequence[Any] = ()) -> bytes:
    """
    ABI-encode a call: 4-byte selector followed by the encoded arguments.

    Args:
        name: Solidity function name
        arg_types: ABI types of the arguments, e.g. ``["address", "uint256"]``
        args: Argument values
    """
    return function_selector(name, arg_types) + encode(list(arg_types), list(args))


def _json_args(payload: dict) -> bytes:
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")


def deploy_code_args(contract_address: str, bytecode: str) -> bytes:
    """Arguments of ``deploy_code``; ``bytecode`` is the hex text of the compiled contract."""
    return _json_args({"contract_address": contract_address, "bytecode": bytecode.strip()})


def run_command_args(contract_address: str, encoded_input: bytes) -> bytes:
    return _json_args({"contract_address": contract_address, "encoded_input": encoded_input.hex()})


def decode_run_command_result(
    outcome: FinalExecutionOutcomeView,
    output_types: Sequence[str]
) -> Tuple[Any, ...]:
    """
    Decode the return value of a ``run_command`` call.

    Raises:
        EvmCallError: If the call failed or its output is not a quoted hex
            string holding values of ``output_types``
    """
    value = outcome.status.decoded_value()
    if value is None:
        raise EvmCallError(f"EVM call did not succeed: {outcome.status.to_wire()}", outcome)
    if len(value) < 2:
        raise EvmCallError(f"EVM call returned {len(value)} bytes, expected a quoted hex string", outcome)
    try:
        return decode(list(output_types), bytes.fromhex(value[1:-1].decode("ascii")))
    except (ValueError, DecodingError) as e:
        raise EvmCallError(f"Unreadable EVM output: {e}", outcome) from e


class EvmContract:
    """
    One Solidity contract living inside the EVM account.

    Args:
        user: User submitting the calls
        signer_id: Account signing every call
        contract_address: Name the contract is registered under in the EVM
        evm_account_id: Account hosting the EVM
        gas: Gas attached to every call
    """

    def __init__(
        self,
        user: User,
        signer_id: str,
        contract_address: str,
        evm_account_id: str = DEFAULT_EVM_ACCOUNT,
        gas: int = DEFAULT_GAS
    ):
        self.user = user
        self.signer_id = signer_id
        self.contract_address = contract_address
        self.evm_account_id = evm_account_id
        self.gas = gas

    def _checked(self, outcome: FinalExecutionOutcomeView, what: str) -> FinalExecutionOutcomeView:
        if not outcome.status.is_success:
            raise EvmCallError(f"{what} on {self.contract_address} failed: {outcome.status.to_wire()}", outcome)
        return outcome

    def deploy(self, bytecode: str) -> FinalExecutionOutcomeView:
        """
        Deploy compiled bytecode under ``contract_address``.

        Raises:
            EvmCallError: If the EVM rejects the code
        """
        outcome = self.user.function_call(
            self.signer_id,
            self.evm_account_id,
            "deploy_code",
            deploy_code_args(self.contract_address, bytecode),
            self.gas,
            0,
        )
        logger.info(f"deploy_code({self.contract_address}): {outcome.status.kind.value}")
        return self._checked(outcome, "deploy_code")

    def call(
        self,
        name: str,
        arg_types: Sequence[str] = (),
        args: Sequence[Any] = (),
        output_types: Sequence[str] = ()
    ) -> Tuple[Any, ...]:
        """
        Run a contract function and decode its outputs.

        Returns:
            Decoded outputs, empty when ``output_types`` is empty
        """
        outcome = self.user.function_call(
            self.signer_id,
            self.evm_account_id,
            "run_command",
            run_command_args(self.contract_address, encode_call(name, arg_types, args)),
            self.gas,
            0,
        )
        logger.debug(f"run_command({name}): {outcome.status.kind.value}")
        self._checked(outcome, f"run_command({name})")
        if not output_types:
            return ()
        return decode_run_command_result(outcome, output_types)
