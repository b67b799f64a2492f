"""
Trail simulation engine for sector density generation.

This module implements a simplified Physarum (slime-mold) model:
- Agents sense the trail field ahead and to either side
- They turn towards the stronger signal, step forward and deposit trail
- The whole field then diffuses to its four neighbours and decays

Agents are stepped one at a time in a fixed order because each one reads
the deposits of the agents before it and may consume a PRNG draw. The
diffusion pass is vectorised with NumPy.
"""

import math
from dataclasses import dataclass
from typing import List

import numpy as np
import structlog

from ..utils.random import RandomSource

logger = structlog.get_logger()

TWO_PI = math.pi * 2
NOISE_AMPLITUDE = 0.01
MAX_JITTER = 4


@dataclass(frozen=True)
class TrailParameters:
    """Agent, sensing and diffusion tuning for one subsector run."""

    deposit_cell_size: int = 10  # deposit cells per hex along each axis
    agent_count: int = 300
    iterations: int = 200
    sensor_distance: float = 2.0  # in deposit cells
    sensor_angle: float = 0.5  # radians, ~28.6 degrees
    rotation_angle: float = 0.3  # radians, ~17 degrees
    step_size: float = 1.0
    deposit_amount: float = 1.0
    diffusion_rate: float = 0.2
    decay_rate: float = 0.96
    simulation_scale: float = 1.0

    def __post_init__(self):
        if self.deposit_cell_size < 1:
            raise ValueError("deposit_cell_size must be at least 1")
        if self.agent_count < 0:
            raise ValueError("agent_count must be non-negative")
        if self.iterations < 0:
            raise ValueError("iterations must be non-negative")
        if not self.simulation_scale > 0:
            raise ValueError("simulation_scale must be positive")
        if self.deposit_amount < 0:
            raise ValueError("deposit_amount must be non-negative")
        if not 0.0 <= self.diffusion_rate <= 1.0:
            raise ValueError("diffusion_rate must be within [0, 1]")
        if not 0.0 < self.decay_rate <= 1.0:
            raise ValueError("decay_rate must be within (0, 1]")

    @property
    def scaled_sensor_distance(self) -> float:
        return self.sensor_distance * self.simulation_scale

    @property
    def scaled_step_size(self) -> float:
        return self.step_size * self.simulation_scale

    @property
    def scaled_rotation(self) -> float:
        return self.rotation_angle * self.simulation_scale


@dataclass
class Agent:
    """A single trail-laying agent in deposit-field coordinates."""

    x: float
    y: float
    angle: float


@dataclass
class DepositField:
    """Accumulated trail produced by one simulation run."""

    values: np.ndarray  # float32, shape (height, width)
    width: int
    height: int

    def total(self) -> float:
        """Sum of all trail in the field."""
        return float(np.sum(self.values, dtype=np.float64))


class TrailSimulation:
    """
    Runs the agent-based deposition, diffusion and decay process.

    The PRNG call order inside :meth:`run` is part of the reproducibility
    contract: jitter (2 draws), field noise (width*height draws, row-major),
    agent spawns (3 draws each), then one draw per agent step whose turning
    rule falls through to a random perturbation.
    """

    def __init__(self, params: TrailParameters, rng: RandomSource):
        self.params = params
        self.rng = rng

    def run(self, n_cols: int, n_rows: int) -> DepositField:
        """
        Simulate a field covering ``n_cols`` x ``n_rows`` hex cells.

        Args:
            n_cols: Hex columns the field will later be aggregated into
            n_rows: Hex rows the field will later be aggregated into

        Returns:
            DepositField with the final trail values
        """
        if n_cols < 1 or n_rows < 1:
            raise ValueError("Simulation needs at least one hex column and row")

        params = self.params
        width, height = self._field_dimensions(n_cols, n_rows)
        values = self._initial_noise(width, height)
        agents = self._spawn_agents(width, height)

        logger.debug(
            "Running trail simulation",
            width=width,
            height=height,
            agents=len(agents),
            iterations=params.iterations,
        )

        flat = values.reshape(-1)
        for _ in range(params.iterations):
            for agent in agents:
                self._step_agent(agent, flat, width, height)
            values = self._diffuse_and_decay(values)
            flat = values.reshape(-1)

        return DepositField(values=values, width=width, height=height)

    def _field_dimensions(self, n_cols: int, n_rows: int):
        """Base size per hex plus a seeded offset of 1-4 cells per axis."""
        jitter_x = int(self.rng.random() * MAX_JITTER) + 1
        jitter_y = int(self.rng.random() * MAX_JITTER) + 1
        cell_size = self.params.deposit_cell_size
        return n_cols * cell_size + jitter_x, n_rows * cell_size + jitter_y

    def _initial_noise(self, width: int, height: int) -> np.ndarray:
        """Low amplitude noise to break symmetry."""
        rng = self.rng
        noise = [rng.random() * NOISE_AMPLITUDE for _ in range(width * height)]
        return np.array(noise, dtype=np.float32).reshape(height, width)

    def _spawn_agents(self, width: int, height: int) -> List[Agent]:
        rng = self.rng
        agents = []
        for _ in range(self.params.agent_count):
            x = rng.random() * width
            y = rng.random() * height
            angle = rng.random() * TWO_PI
            agents.append(Agent(x=x, y=y, angle=angle))
        return agents

    @staticmethod
    def _sample(flat: np.ndarray, width: int, height: int, x: float, y: float) -> float:
        """Nearest-cell sample; sensors outside the field read as zero."""
        xi = math.floor(x)
        yi = math.floor(y)
        if xi < 0 or xi >= width or yi < 0 or yi >= height:
            return 0.0
        return flat[yi * width + xi]

    def _step_agent(self, agent: Agent, flat: np.ndarray, width: int, height: int) -> None:
        """Sense, turn, move, bounce and deposit for one agent."""
        params = self.params
        distance = params.scaled_sensor_distance
        rotation = params.scaled_rotation
        step = params.scaled_step_size
        sensor_angle = params.sensor_angle

        heading = agent.angle
        centre = self._sample(
            flat, width, height,
            agent.x + math.cos(heading) * distance,
            agent.y + math.sin(heading) * distance,
        )
        left = self._sample(
            flat, width, height,
            agent.x + math.cos(heading - sensor_angle) * distance,
            agent.y + math.sin(heading - sensor_angle) * distance,
        )
        right = self._sample(
            flat, width, height,
            agent.x + math.cos(heading + sensor_angle) * distance,
            agent.y + math.sin(heading + sensor_angle) * distance,
        )

        if centre > left and centre > right:
            pass
        elif left > right:
            agent.angle -= rotation
        elif right > left:
            agent.angle += rotation
        else:
            agent.angle += (self.rng.random() - 0.5) * rotation

        agent.x += math.cos(agent.angle) * step
        agent.y += math.sin(agent.angle) * step

        # Reflective bounds (the diffusion pass wraps, movement does not)
        if agent.x < 0:
            agent.x = 0.0
            agent.angle = math.pi - agent.angle
        elif agent.x >= width - 1:
            agent.x = float(width - 1)
            agent.angle = math.pi - agent.angle
        if agent.y < 0:
            agent.y = 0.0
            agent.angle = -agent.angle
        elif agent.y >= height - 1:
            agent.y = float(height - 1)
            agent.angle = -agent.angle

        flat[math.floor(agent.y) * width + math.floor(agent.x)] += params.deposit_amount

    def _diffuse_and_decay(self, values: np.ndarray) -> np.ndarray:
        """
        One synchronous diffusion/decay pass with toroidal neighbours.

        Computed in float64 from the pre-pass field and stored back as
        float32 into a fresh buffer.
        """
        old = values.astype(np.float64)
        up = np.roll(old, 1, axis=0)
        down = np.roll(old, -1, axis=0)
        left = np.roll(old, 1, axis=1)
        right = np.roll(old, -1, axis=1)
        average = (up + down + left + right) * 0.25
        diffused = old + self.params.diffusion_rate * (average - old)
        diffused *= self.params.decay_rate
        return diffused.astype(np.float32)


def run_simulation(
    n_cols: int, n_rows: int, params: TrailParameters, rng: RandomSource
) -> DepositField:
    """Convenience wrapper running a single :class:`TrailSimulation`."""
    return TrailSimulation(params, rng).run(n_cols, n_rows)
