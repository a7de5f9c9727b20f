"""Random values for the {{RANDOM ...}} placeholders."""

import random
import re
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TypeVar

from reqcheck.errors import TemplateError

T = TypeVar("T")

# Fixed seed: suites are reproducible unless a caller supplies its own source.
DEFAULT_SEED = 34


class RandomSource:
    """A random.Random guarded by a lock, safe to share between tasks and threads."""

    def __init__(self, seed: int | None = DEFAULT_SEED) -> None:
        self._random = random.Random(seed)
        self._lock = threading.Lock()

    def randint(self, low: int, high: int) -> int:
        """Return a random integer in [low, high]."""
        with self._lock:
            return self._random.randint(low, high)

    def choice(self, values: Sequence[T]) -> T:
        with self._lock:
            return self._random.choice(values)


DEFAULT_RANDOM = RandomSource()


EMAIL_NAMES = (
    "Ada", "Alan", "Barbara", "Dennis", "Edsger", "Frances", "Grace", "Guido",
    "John", "Ken", "Linus", "Margaret", "Niklaus", "Radia", "Tim", "Yukihiro",
    "Hopper", "Lovelace", "Turing", "Liskov", "Ritchie", "Dijkstra", "Allen",
    "Rossum", "McCarthy", "Thompson", "Torvalds", "Hamilton", "Wirth",
    "Perlman", "Berners", "Matsumoto",
)  # fmt: skip

TEXT_CORPUS = {
    "en": (
        "The quick brown fox jumps over the lazy dog while the cat watches "
        "from the garden wall and the birds sing their morning songs in the "
        "old oak tree near the river where children play until the sun goes "
        "down behind the hills and the first stars appear in the evening sky"
    ),
    "de": (
        "Der schnelle braune Fuchs springt über den faulen Hund während die "
        "Katze von der Gartenmauer aus zusieht und die Vögel ihre Morgenlieder "
        "in der alten Eiche am Fluss singen wo Kinder spielen bis die Sonne "
        "hinter den Hügeln versinkt und die ersten Sterne erscheinen"
    ),
    "fr": (
        "Le renard brun rapide saute par dessus le chien paresseux pendant que "
        "le chat regarde depuis le mur du jardin et que les oiseaux chantent "
        "dans le vieux chêne près de la rivière où les enfants jouent jusqu'au "
        "coucher du soleil derrière les collines"
    ),
}


@dataclass(frozen=True)
class RandomFunc:
    """One kind of random value: its argument syntax and its generator."""

    name: str
    pattern: re.Pattern[str]
    generate: Callable[[re.Match[str], RandomSource], str]


def _range(match: re.Match[str], default_min: int | None) -> tuple[int, int]:
    high = int(match["max"])
    if match["min"] is not None:
        low = int(match["min"])
    elif default_min is not None:
        low = min(default_min, high)
    else:
        low = high
    if low > high:
        raise TemplateError(f"invalid range [{low},{high}]")
    return low, high


def random_number(match: re.Match[str], source: RandomSource) -> str:
    """RANDOM NUMBER [<min>-]<max> [<fmt>]; min defaults to 1, fmt to %d."""
    low, high = _range(match, default_min=1)
    fmt = match["fmt"] or "%d"
    try:
        return fmt % source.randint(low, high)
    except (TypeError, ValueError) as err:
        raise TemplateError(f"bad number format {fmt!r}: {err}") from err


def random_text(match: re.Match[str], source: RandomSource) -> str:
    """RANDOM TEXT [<lang>] [<min>-]<max> words; min defaults to 4 (capped at max)."""
    lang = match["lang"] or "fr"
    corpus = TEXT_CORPUS.get(lang)
    if corpus is None:
        raise TemplateError(f"no {lang} corpus of random text")
    low, high = _range(match, default_min=4)
    count = source.randint(low, high)
    words = corpus.split(" ")
    begin = source.randint(0, len(words) - 1)
    text: list[str] = []
    while len(text) < count:
        text.extend(words[begin:])
        begin = 0
    return " ".join(text[:count])


def random_email(match: re.Match[str], source: RandomSource) -> str:
    """RANDOM EMAIL [<domain>]; domain defaults to gmail.com."""
    domain = match["domain"] or "gmail.com"
    first = source.choice(EMAIL_NAMES)
    last = source.choice(EMAIL_NAMES)
    middle = ""
    if (r := source.randint(0, 29)) < 26:
        middle = "." + chr(ord("A") + r)
    return f"{first}{middle}.{last}@{domain}"


RANDOM_FUNCS = (
    RandomFunc(
        name="NUMBER",
        pattern=re.compile(r"(?:(?P<min>\d+)-)?(?P<max>\d+)(?: +(?P<fmt>%.+))?"),
        generate=random_number,
    ),
    RandomFunc(
        name="TEXT",
        pattern=re.compile(r"(?:(?P<lang>[a-z]{2,3}) +)?(?:(?P<min>\d+)-)?(?P<max>\d+)"),
        generate=random_text,
    ),
    RandomFunc(
        name="EMAIL",
        pattern=re.compile(r"(?P<domain>[-a-z.]+)?"),
        generate=random_email,
    ),
)


def random_value(spec: str, source: RandomSource) -> str:
    """Produce the value for a placeholder body like 'RANDOM NUMBER 5-9'."""
    what = spec[len("RANDOM") :].strip()
    for func in RANDOM_FUNCS:
        if not what.startswith(func.name):
            continue
        args = what[len(func.name) :].strip()
        match = func.pattern.fullmatch(args)
        if match is None:
            raise TemplateError(
                f"cannot parse argument {args!r} to RANDOM {func.name}"
            )
        return func.generate(match, source)
    raise TemplateError(f"no such random type {spec!r}")
