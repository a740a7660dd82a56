"""Step-trace algorithm engine package."""

from .api import run_algorithm, run_algorithm_json  # noqa: F401
from .automata import simulate_dfa, simulate_nfa, simulate_pda, simulate_tm  # noqa: F401
from .backtracking import graph_coloring, n_queens, subset_sum  # noqa: F401
from .branch_bound import fifteen_puzzle, travelling_salesman  # noqa: F401
from .disk import (  # noqa: F401
    clook,
    compare_disk_scheduling,
    cscan,
    fcfs,
    look,
    scan,
    sstf,
)
from .errors import MalformedInstanceError  # noqa: F401
from .grammar import derive_cfg, load_grammar  # noqa: F401
from .matching import (  # noqa: F401
    build_lps,
    kmp_string_match,
    match_regex,
    naive_string_match,
)
from .paging import (  # noqa: F401
    compare_page_replacement,
    fifo_page_replacement,
    lfu_page_replacement,
    lru_page_replacement,
    optimal_page_replacement,
)
from .registry import get_algorithm, list_algorithms  # noqa: F401
from .run_types import EngineConfig  # noqa: F401
