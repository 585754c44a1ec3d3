"""
Phase Logging for the LIX Text Generator
========================================

Colored, structured console logging with phase tracking for the generation
loop. No emojis in console output (Windows encoding issues).
"""

import logging
import time
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from colorama import Fore, Style, init

# Initialize colorama for Windows
init(autoreset=True)


class Phase:
    """Phase constants for the generation loop"""
    GENERATION = "TEXT_GENERATION"
    SCORING = "LIX_SCORING"
    FEEDBACK = "FEEDBACK_SYNTHESIS"
    COMPLETION = "COMPLETION"


PHASE_COLORS = {
    Phase.GENERATION: Fore.GREEN,
    Phase.SCORING: Fore.BLUE,
    Phase.FEEDBACK: Fore.YELLOW,
    Phase.COMPLETION: Fore.GREEN + Style.BRIGHT,
}

PHASE_ICONS = {
    Phase.GENERATION: "[GEN]",
    Phase.SCORING: "[LIX]",
    Phase.FEEDBACK: "[FBK]",
    Phase.COMPLETION: "[OK ]",
}


class TimingTracker:
    """Track timing for phases"""

    def __init__(self):
        self._timings: Dict[str, float] = {}
        self._start_times: Dict[str, float] = {}

    def start(self, key: str):
        self._start_times[key] = time.time()

    def end(self, key: str) -> float:
        """End timing and return elapsed seconds"""
        if key not in self._start_times:
            return 0.0
        elapsed = time.time() - self._start_times.pop(key)
        self._timings[key] = self._timings.get(key, 0.0) + elapsed
        return elapsed

    def get_all(self) -> Dict[str, float]:
        return self._timings.copy()


class PhaseLogger:
    """
    Logger with phase tracking and visual formatting for one request.

    Usage:
        phase_logger = PhaseLogger(request_id="abc123", extra_verbose=True)

        with phase_logger.phase(Phase.GENERATION):
            phase_logger.log_conversation(model, conversation)
            ...
            phase_logger.log_response(model, raw_text)
    """

    def __init__(
        self,
        request_id: str,
        verbose: bool = False,
        extra_verbose: bool = False,
        logger: Optional[logging.Logger] = None,
    ):
        self.request_id = request_id
        self.verbose = verbose or extra_verbose
        self.extra_verbose = extra_verbose
        self.logger = logger or logging.getLogger(__name__)
        self.timing_tracker = TimingTracker()
        self._current_phase: Optional[str] = None
        self._attempt_context: Optional[int] = None

    def set_attempt(self, attempt: int):
        """Set current attempt number for context"""
        self._attempt_context = attempt

    @contextmanager
    def phase(self, phase_name: str, sub_label: Optional[str] = None):
        """Context manager for phase tracking with automatic timing"""
        previous = self._current_phase
        self._current_phase = phase_name
        self.timing_tracker.start(phase_name)
        self._print_phase_header(phase_name, sub_label)
        try:
            yield self
        finally:
            elapsed = self.timing_tracker.end(phase_name)
            self._print_phase_footer(phase_name, elapsed)
            self._current_phase = previous

    def _print_phase_header(self, phase_name: str, sub_label: Optional[str] = None):
        if not self.verbose:
            return
        color = PHASE_COLORS.get(phase_name, Fore.WHITE)
        icon = PHASE_ICONS.get(phase_name, "[???]")
        separator = "=" * 60
        timestamp = datetime.now().strftime("%H:%M:%S")
        attempt_str = f" [Attempt {self._attempt_context}]" if self._attempt_context else ""
        sub_str = f" - {sub_label}" if sub_label else ""

        self.logger.info(f"{color}{separator}{Style.RESET_ALL}")
        self.logger.info(
            f"{color}{icon} {phase_name}{attempt_str}{sub_str} [{self.request_id}] [{timestamp}]{Style.RESET_ALL}"
        )
        self.logger.info(f"{color}{separator}{Style.RESET_ALL}")

    def _print_phase_footer(self, phase_name: str, elapsed: float):
        if not self.verbose:
            return
        color = PHASE_COLORS.get(phase_name, Fore.WHITE)
        icon = PHASE_ICONS.get(phase_name, "[???]")
        elapsed_str = f"{elapsed:.2f}s" if elapsed > 0 else "N/A"
        self.logger.info(f"{color}{icon} {phase_name} COMPLETED (Elapsed: {elapsed_str}){Style.RESET_ALL}")

    def info(self, message: str):
        """Log info message with current phase context"""
        if self._current_phase:
            color = PHASE_COLORS.get(self._current_phase, Fore.WHITE)
            icon = PHASE_ICONS.get(self._current_phase, "[???]")
            self.logger.info(f"{color}{icon}{Style.RESET_ALL} [{self.request_id}] {message}")
        else:
            self.logger.info(f"[{self.request_id}] {message}")

    def debug(self, message: str):
        """Log debug message (only if verbose)"""
        if self.verbose:
            self.logger.debug(f"{Fore.WHITE}{Style.DIM}[{self.request_id}] {message}{Style.RESET_ALL}")

    def warning(self, message: str):
        self.logger.warning(f"{Fore.YELLOW}[WARN] [{self.request_id}] {message}{Style.RESET_ALL}")

    def error(self, message: str):
        self.logger.error(f"{Fore.RED}{Style.BRIGHT}[ERROR] [{self.request_id}] {message}{Style.RESET_ALL}")

    def log_conversation(self, model: str, conversation: Sequence[Any], **kwargs):
        """Log the full conversation sent to the generator (only if extra_verbose)"""
        if not self.extra_verbose:
            return

        separator = "~" * 60
        self.logger.info(f"{Fore.CYAN}{separator}{Style.RESET_ALL}")
        self.logger.info(f"{Fore.CYAN}[EXTRA_VERBOSE] CONVERSATION TO {model}{Style.RESET_ALL}")
        for turn in conversation:
            self.logger.info(f"{Fore.GREEN}[{turn.role.upper()}]{Style.RESET_ALL}")
            self.logger.info(turn.content)
        if kwargs:
            self.logger.info(f"{Fore.YELLOW}[PARAMETERS]{Style.RESET_ALL}")
            for key, value in kwargs.items():
                self.logger.info(f"  {key}: {value}")
        self.logger.info(f"{Fore.CYAN}{separator}{Style.RESET_ALL}")

    def log_response(self, model: str, response: str):
        """Log the raw generator output (only if extra_verbose)"""
        if not self.extra_verbose:
            return

        separator = "~" * 60
        self.logger.info(f"{Fore.CYAN}{separator}{Style.RESET_ALL}")
        self.logger.info(f"{Fore.CYAN}[EXTRA_VERBOSE] RESPONSE FROM {model}{Style.RESET_ALL}")
        self.logger.info(response)
        self.logger.info(f"{Fore.CYAN}{separator}{Style.RESET_ALL}")

    def log_decision(self, accepted: bool, score: float, violations: List[str]):
        """Log the accept/reject decision for one attempt"""
        if accepted:
            color = Fore.GREEN + Style.BRIGHT
            icon = "[OK]"
            decision = "ACCEPTED"
        else:
            color = Fore.RED + Style.BRIGHT
            icon = "[REJECT]"
            decision = "REJECTED"

        attempt_str = f" attempt {self._attempt_context}" if self._attempt_context else ""
        self.logger.info(
            f"{color}{icon} [{self.request_id}]{attempt_str} {decision} (LIX {score:.1f}){Style.RESET_ALL}"
        )
        for violation in violations:
            self.logger.info(f"  - {violation}")

    def log_timing_summary(self):
        """Log timing summary for all phases (only if extra_verbose)"""
        if not self.extra_verbose:
            return

        timings = self.timing_tracker.get_all()
        if not timings:
            return

        total_time = 0.0
        self.logger.info(f"{Fore.WHITE}{Style.BRIGHT}TIMING SUMMARY [{self.request_id}]{Style.RESET_ALL}")
        for phase_name, elapsed in sorted(timings.items()):
            color = PHASE_COLORS.get(phase_name, Fore.WHITE)
            self.logger.info(f"{color}{phase_name:30s} {elapsed:8.2f}s{Style.RESET_ALL}")
            total_time += elapsed
        self.logger.info(f"{Fore.WHITE}{Style.BRIGHT}TOTAL TIME: {total_time:.2f}s{Style.RESET_ALL}")


def create_phase_logger(
    request_id: str,
    verbose: bool = False,
    extra_verbose: bool = False,
) -> PhaseLogger:
    """Create a new PhaseLogger instance"""
    return PhaseLogger(request_id=request_id, verbose=verbose, extra_verbose=extra_verbose)
