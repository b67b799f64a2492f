"""
Main world generation after the Cepheus Deluxe / classic Traveller tables.

Every roll is drawn from the injected random source, normally the same
LcgPRNG that produced the density field, so one seed reproduces both the
sector map and its worlds. The order of rolls in :meth:`WorldGenerator.generate`
is part of that contract.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import structlog

from ..utils.random import RandomSource, roll_2d, roll_die
from .quantization import clamp

logger = structlog.get_logger()

# Vacuum, Trace, Exotic, Corrosive, Insidious
UNBREATHABLE_ATMOSPHERES = (0, 1, 10, 11, 12)

RED_TRADE_CODES = ("In", "Hi", "Ht", "Va", "Ri")
AMBER_TRADE_CODES = ("Ag", "As", "Ba", "De", "Fl", "Ic", "Na", "Ni", "Lo", "Lt", "Po", "Wa", "Ga")


class Starport(str, Enum):
    """Starport classes, best (A) to none (X)."""

    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"
    X = "X"


@dataclass(frozen=True)
class World:
    """Universal World Profile plus trade codes, bases and gas giant flag."""

    starport: Starport
    size: int
    atmosphere: int
    hydrographics: int
    population: int
    government: int
    law: int
    tech_level: int
    trade_codes: Tuple[str, ...] = ()
    bases: Tuple[str, ...] = ()
    gas_giant: bool = False

    def uwp(self) -> str:
        """8-character UWP code, with ``*`` appended when a gas giant is present."""
        digits = (
            self.size,
            self.atmosphere,
            self.hydrographics,
            self.population,
            self.government,
            self.law,
            self.tech_level,
        )
        code = self.starport.value + "".join(_to_hex(d) for d in digits)
        if self.gas_giant:
            code += "*"
        return code

    @property
    def codes(self) -> List[str]:
        """Trade codes followed by base codes."""
        return list(self.trade_codes) + list(self.bases)

    def describe(self) -> str:
        """Multi-line human readable summary."""
        lines = [
            f"Starport: {self.starport.value}",
            f"Size: {self.size}",
            f"Atmosphere: {self.atmosphere}",
            f"Hydrographics: {self.hydrographics}",
            f"Population: {self.population}",
            f"Government: {self.government}",
            f"Law: {self.law}",
            f"Tech Level: {self.tech_level}",
            f"Gas Giant: {'Yes' if self.gas_giant else 'No'}",
        ]
        if self.trade_codes:
            lines.append(f"Trade Codes: {', '.join(self.trade_codes)}")
        if self.bases:
            lines.append(f"Bases: {', '.join(self.bases)}")
        return "\n".join(lines)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["starport"] = self.starport.value
        data["trade_codes"] = list(self.trade_codes)
        data["bases"] = list(self.bases)
        data["uwp"] = self.uwp()
        return data


def _to_hex(value: int) -> str:
    return format(clamp(value, 0, 15), "X")


def trade_code_colour(trade_codes: Sequence[str]) -> Optional[str]:
    """Highlight colour for a world's trade codes: red, orange or None."""
    if any(code in RED_TRADE_CODES for code in trade_codes):
        return "red"
    if any(code in AMBER_TRADE_CODES for code in trade_codes):
        return "orange"
    return None


def classify_trade_codes(size: int, atmosphere: int, hydro: int, pop: int, tech: int) -> Tuple[str, ...]:
    """Trade codes implied by the world profile."""
    codes = []
    if 4 <= size <= 9 and 4 <= atmosphere <= 9 and 5 <= hydro <= 7 and 5 <= pop <= 7:
        codes.append("Ag")
    if size == 0:
        codes.append("As")
    if pop == 0:
        codes.append("Ba")
    if atmosphere >= 2 and hydro == 0:
        codes.append("De")
    if atmosphere in (10, 11, 12) and hydro >= 1:
        codes.append("Fl")
    if atmosphere in (5, 6, 8) and 4 <= hydro <= 8 and 4 <= pop <= 8:
        codes.append("Ga")
    if pop >= 9:
        codes.append("Hi")
    if tech >= 12:
        codes.append("Ht")
    if atmosphere <= 1 and hydro >= 1:
        codes.append("Ic")
    if atmosphere in (0, 1, 2, 4, 7, 9) and pop >= 9:
        codes.append("In")
    if 1 <= pop <= 3:
        codes.append("Lo")
    if tech <= 5:
        codes.append("Lt")
    if atmosphere <= 3 and hydro <= 3 and pop >= 6:
        codes.append("Na")
    if 4 <= pop <= 6:
        codes.append("Ni")
    if 2 <= atmosphere <= 5 and hydro <= 3:
        codes.append("Po")
    if atmosphere in (6, 8) and 6 <= pop <= 8:
        codes.append("Ri")
    if hydro == 10:
        codes.append("Wa")
    if atmosphere == 0:
        codes.append("Va")
    return tuple(codes)


class WorldGenerator:
    """Rolls complete main worlds from a shared random source."""

    def __init__(self, rng: RandomSource):
        self.rng = rng

    def _roll_2d(self) -> int:
        return roll_2d(self.rng)

    def generate_size(self) -> int:
        return clamp(self._roll_2d() - 2, 0, 10)

    def generate_atmosphere(self, size: int) -> int:
        if size == 0:
            return 0
        return clamp(self._roll_2d() - 7 + size, 0, 15)

    def generate_hydrographics(self, size: int, atmosphere: int) -> int:
        if size in (0, 1):
            return 0
        hydro = self._roll_2d() - 7 + size
        if atmosphere in UNBREATHABLE_ATMOSPHERES:
            hydro -= 4
        if atmosphere == 14:
            hydro -= 2
        return clamp(hydro, 0, 10)

    def generate_population(self, atmosphere: int, hydro: int) -> int:
        pop = self._roll_2d() - 2
        dm = 0
        if atmosphere in UNBREATHABLE_ATMOSPHERES:
            dm -= 2
        if atmosphere == 6:
            dm += 3
        if atmosphere == 7:
            dm += 1
        if atmosphere in (5, 8):
            dm += 1
        if hydro == 0 and atmosphere <= 3:
            dm -= 1
        return clamp(pop + dm, 0, 10)

    def generate_government(self, population: int) -> int:
        if population == 0:
            return 0
        return clamp(self._roll_2d() - 7 + population, 0, 15)

    def generate_law(self, government: int) -> int:
        if government == 0:
            return 0
        return clamp(self._roll_2d() - 7 + government, 0, 10)

    def generate_starport(self, population: int) -> Starport:
        if population == 0:
            return Starport.X
        value = self._roll_2d() - 7 + population
        if value <= 2:
            return Starport.X
        if value <= 4:
            return Starport.E
        if value <= 6:
            return Starport.D
        if value <= 8:
            return Starport.C
        if value <= 10:
            return Starport.B
        return Starport.A

    def generate_tech_level(
        self,
        size: int,
        atmosphere: int,
        hydro: int,
        population: int,
        government: int,
        starport: Starport,
    ) -> int:
        """1D6 plus profile DMs, then environmental minimums."""
        tech = roll_die(self.rng)
        dm = {Starport.A: 6, Starport.B: 4, Starport.C: 2, Starport.X: -4}.get(starport, 0)

        if size in (0, 1) or size == 10:
            dm += 2
        elif 2 <= size <= 3 or 8 <= size <= 9:
            dm += 1

        if atmosphere <= 3 or atmosphere in (10, 11, 12):
            dm += 1

        if hydro in (0, 9):
            dm += 1
        if hydro == 10:
            dm += 2

        if 1 <= population <= 5:
            dm += 1
        if population == 9:
            dm += 2
        if population == 10:
            dm += 4

        if government in (0, 5, 13, 14):
            dm += 1
        if government == 9:
            dm += 2

        tech = max(tech + dm, 0)

        # Survival minimums for hostile environments
        if hydro in (0, 10) and population >= 6:
            tech = max(tech, 4)
        if atmosphere in (4, 7, 9):
            tech = max(tech, 5)
        if atmosphere <= 3 or atmosphere in (10, 11, 12, 15):
            tech = max(tech, 7)
        return tech

    def generate_bases(self, starport: Starport) -> Tuple[str, ...]:
        """Naval, research, scout and pirate bases, each on its own roll."""
        bases = []
        if starport in (Starport.A, Starport.B) and self._roll_2d() >= 8:
            bases.append("N")
        if starport in (Starport.A, Starport.B, Starport.C):
            threshold = 8 if starport is Starport.A else 10
            if self._roll_2d() >= threshold:
                bases.append("R")
        if starport in (Starport.A, Starport.B, Starport.C, Starport.D):
            threshold = {Starport.A: 4, Starport.B: 5, Starport.C: 6}.get(starport, 7)
            if self._roll_2d() >= threshold:
                bases.append("S")
        if "N" not in bases and starport is not Starport.A and self._roll_2d() >= 12:
            bases.append("P")
        return tuple(bases)

    def generate_gas_giant(self) -> bool:
        return self._roll_2d() >= 5

    def generate(self) -> World:
        """Roll a complete world."""
        size = self.generate_size()
        atmosphere = self.generate_atmosphere(size)
        hydro = self.generate_hydrographics(size, atmosphere)
        population = self.generate_population(atmosphere, hydro)
        government = self.generate_government(population)
        law = self.generate_law(government)
        starport = self.generate_starport(population)
        tech = self.generate_tech_level(size, atmosphere, hydro, population, government, starport)
        trade_codes = classify_trade_codes(size, atmosphere, hydro, population, tech)
        bases = self.generate_bases(starport)
        gas_giant = self.generate_gas_giant()

        world = World(
            starport=starport,
            size=size,
            atmosphere=atmosphere,
            hydrographics=hydro,
            population=population,
            government=government,
            law=law,
            tech_level=tech,
            trade_codes=trade_codes,
            bases=bases,
            gas_giant=gas_giant,
        )
        logger.debug("World generated", uwp=world.uwp())
        return world


def generate_world(rng: RandomSource) -> World:
    """Roll a single world from ``rng``."""
    return WorldGenerator(rng).generate()
