"""Demo: print the step traces of a few engines side by side."""

import logging

from steptrace.automata import simulate_dfa
from steptrace.disk import compare_disk_scheduling
from steptrace.harness import DFA_ENDS_WITH_01, DISK_HEAD, DISK_QUEUE, PAGES_LONG
from steptrace.matching import kmp_string_match, naive_string_match
from steptrace.paging import compare_page_replacement


def _show_dfa(text):
    result = simulate_dfa(DFA_ENDS_WITH_01, text)
    print(f"DFA ends-with-01 on {text!r}: {'ACCEPT' if result.accepted else 'REJECT'}")
    for step in result.steps:
        moves = ", ".join(str(t) for t in step.transition) or "start"
        print(f"    [{step.step_index}] {step.consumed_input:>8} | {step.current_state:<3} {moves}")


def _show_matching(text, pattern):
    naive = naive_string_match(text, pattern)
    kmp = kmp_string_match(text, pattern)
    print(f"Searching {pattern!r} in {text!r}")
    print(f"    naive: matches={list(naive.matches)} comparisons={naive.total_comparisons}")
    print(f"    kmp:   matches={list(kmp.matches)} comparisons={kmp.total_comparisons}")
    print(f"    lps:   {list(kmp.lps)}")


def _show_paging(frames):
    print(f"Page replacement, {frames} frames, {len(PAGES_LONG)} references")
    for name, result in compare_page_replacement(PAGES_LONG, frames).items():
        print(f"    {name:<8} faults={result.page_faults:<3} hit ratio={result.hit_ratio}%")


def _show_disk():
    print(f"Disk scheduling, head at {DISK_HEAD}")
    for name, result in compare_disk_scheduling(DISK_QUEUE, DISK_HEAD).items():
        path = " -> ".join(str(p) for p in result.sequence)
        print(f"    {name:<6} seek={result.seek_time:<4} {path}")


def main():
    logging.basicConfig(level=logging.WARNING)
    print("=" * 60)
    for text in ("1001", "100"):
        _show_dfa(text)
    print("=" * 60)
    _show_matching("AABAACAADAABAABA", "AABA")
    print("=" * 60)
    for frames in (3, 4):
        _show_paging(frames)
    print("=" * 60)
    _show_disk()


if __name__ == "__main__":
    main()
