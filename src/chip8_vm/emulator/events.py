"""
Step Events
===========

Every call to Emulator.step() or Emulator.run() returns a StepEvent that
says whether the machine can continue and, if not, why it halted.

    >>> event = emu.step()
    >>> if event.halted:
    ...     print(f"Halted: {event.halt_reason.name} at ${event.address:04X}")
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from ..errors import MachineError, MemoryBoundsError, StackUnderflowError
from .instruction import Instruction


class RunState(Enum):
    """Step driver state. HALTED is terminal until reset()."""
    READY = auto()
    HALTED = auto()


class StepReason(Enum):
    """
    Enumeration of outcomes of a step or run.
    """
    STEP = auto()             # One instruction executed normally
    WAITING_FOR_KEY = auto()  # Key wait polled and found no key
    HALTED = auto()           # Fatal error, machine stopped
    MAX_STEPS = auto()        # run() used up its step budget


class HaltReason(Enum):
    """Why the machine halted."""
    STACK_UNDERFLOW = auto()  # Return with an empty call stack
    MEMORY_BOUNDS = auto()    # Fetch or access beyond $FFF

    @classmethod
    def from_error(cls, error: MachineError) -> "HaltReason":
        if isinstance(error, StackUnderflowError):
            return cls.STACK_UNDERFLOW
        if isinstance(error, MemoryBoundsError):
            return cls.MEMORY_BOUNDS
        raise ValueError(f"No halt reason for {type(error).__name__}")


@dataclass
class StepEvent:
    """
    Result of a step or run.

    Attributes:
        reason: Outcome category
        address: PC of the instruction executed (or that failed)
        opcode: Raw opcode fetched, if any
        instruction: Decoded instruction, if any
        halt_reason: Set when reason is HALTED
        error: The MachineError that halted the machine
        message: Human-readable description
    """
    reason: StepReason
    address: Optional[int] = None
    opcode: Optional[int] = None
    instruction: Optional[Instruction] = None
    halt_reason: Optional[HaltReason] = None
    error: Optional[MachineError] = None
    message: str = ""

    @property
    def halted(self) -> bool:
        return self.reason is StepReason.HALTED

    def __str__(self) -> str:
        """Return human-readable description."""
        if self.message:
            return self.message
        match self.reason:
            case StepReason.STEP:
                return f"Step at ${self.address:04X}" if self.address is not None else "Step"
            case StepReason.WAITING_FOR_KEY:
                return "Waiting for key"
            case StepReason.HALTED:
                return f"Halted: {self.error}" if self.error else "Halted"
            case StepReason.MAX_STEPS:
                return "Maximum steps reached"
            case _:
                return "Unknown"
