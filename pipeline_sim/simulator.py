import logging
import threading
from enum import Enum

from .config import load_config
from .core import Core
from .errors import ErrorLog, MemoryOutOfBounds
from .memory import Memory
from .program import Program
from .registers import RegisterFile

logger = logging.getLogger(__name__)


class State(Enum):
    IDLE = "idle"
    RUNNING = "running"
    STEPPING_ONCE = "stepping"
    HALTED = "halted"


class Simulator:
    """
    Owns one pipeline together with its registers, memory and program, and
    drives it either one cycle at a time or continuously.
    """

    def __init__(self, config: dict = None):
        self.config = config if config is not None else load_config()
        self.errors = ErrorLog(self.config["error_log_size"])
        self.registers = RegisterFile(self.errors)
        self.memory = Memory(self.config["memory_size"])
        self.program = Program()
        self.core = Core(self.program, self.registers, self.memory, self.errors,
                         forwarding=self.config["forwarding"],
                         cycle_limit=self.config["cycle_limit"])
        self.state = State.IDLE
        self.last_run = None

        self._lock = threading.RLock()
        self._stop_requested = threading.Event()
        self._thread = None

    @property
    def is_running(self):
        return self.state is State.RUNNING

    def load_program(self, lines):
        self.stop()
        with self._lock:
            self.program.load(lines)
            self.core.reset_pipeline()
            self.state = State.IDLE
        logger.info("Loaded %d program lines", len(self.program))

    def reset(self):
        self.stop()
        with self._lock:
            self.registers.reset()
            self.memory.reset()
            self.core.reset_pipeline()
            self.errors.clear()
            self.state = State.IDLE

    def _halt(self, reason):
        core = self.core
        if reason == "cycle limit":
            logger.warning("Maximum cycle count %d reached. Stopping simulation.", core.cycle_limit)
        else:
            logger.info("Program completed after %d cycles", core.cycles)
        self.last_run = {
            "reason": reason,
            "cycles": core.cycles,
            "instructions": core.inst_executed,
            "stalls": core.stall_count,
            "flushes": core.pipeline_flush_count,
            "ipc": core.get_ipc(),
        }
        core.reset_pipeline()
        self.state = State.HALTED

    def _cycle(self):
        """Advance one cycle unless the program is done. Returns (line, halted)."""
        reason = self.core.halt_reason()
        if reason is not None:
            self._halt(reason)
            return None, True
        return self.core.pipeline_cycle(), False

    def step_once(self):
        """Advance exactly one cycle. Returns the fetched line, or None."""
        if self.is_running:
            logger.warning("Step ignored while the simulation is running")
            return self.core.current_line
        with self._lock:
            self.state = State.STEPPING_ONCE
            line, halted = self._cycle()
            if not halted:
                self.state = State.IDLE
            return line

    def run(self, speed=None):
        """
        Run cycles until the program halts or stop() is called, waiting
        `speed` milliseconds between cycles.
        """
        self._stop_requested.clear()
        return self._run(speed)

    def _run(self, speed):
        delay = (self.config["execution_speed"] if speed is None else speed) / 1000.0
        with self._lock:
            self.core.reset_pipeline()
            self.state = State.RUNNING
        logger.info("Starting simulation with %d instructions", len(self.program))

        while not self._stop_requested.is_set():
            with self._lock:
                if self.state is not State.RUNNING:
                    break
                _, halted = self._cycle()
            if halted:
                break
            if delay > 0:
                self._stop_requested.wait(delay)
        return self.state

    def start(self, speed=None):
        """Run in a background thread."""
        self.stop()
        self._stop_requested.clear()
        self._thread = threading.Thread(target=self._run, args=(speed,), daemon=True)
        self._thread.start()
        return self._thread

    def stop(self):
        """Cancel a run or a stepping session and clear the pipeline. Registers and memory are kept."""
        self._stop_requested.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        self._thread = None
        with self._lock:
            # A halt has already cleared the pipeline.
            if self.state is not State.HALTED:
                self.core.reset_pipeline()
            self.state = State.IDLE

    def run_to_completion(self):
        """Run with no delay on the calling thread."""
        return self.run(speed=0)

    # --- Direct access for display and manual editing ---
    def read_register(self, index):
        with self._lock:
            return self.registers.read(index)

    def write_register(self, index, value):
        with self._lock:
            self.registers.write(index, value)

    def read_word(self, address):
        with self._lock:
            try:
                return self.memory.read_word(address)
            except MemoryOutOfBounds as e:
                self.errors.report(e)
                return 0

    def write_word(self, address, value):
        with self._lock:
            try:
                self.memory.write_word(address, value)
            except MemoryOutOfBounds as e:
                self.errors.report(e)

    def snapshot(self):
        with self._lock:
            self.registers.snapshot_as_baseline()
            self.memory.snapshot_as_baseline()

    def restore(self):
        with self._lock:
            self.registers.restore_from_baseline()
            self.memory.restore_from_baseline()

    def status(self):
        with self._lock:
            core = self.core
            return {
                "state": self.state.value,
                "pc": core.pc,
                "cycles": core.cycles,
                "current_line": core.current_line,
                "stages": core.stage_view(),
                "registers": self.registers.values(),
                "hi": core.hi,
                "forwarding": core.forwarding,
                "stalls": core.stall_count,
                "flushes": core.pipeline_flush_count,
                "instructions": core.inst_executed,
                "ipc": core.get_ipc(),
                "last_run": self.last_run,
            }
