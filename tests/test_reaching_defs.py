"""
Unit tests for reaching definitions and the solver strategies it runs under.
"""

import random
import unittest

from blockflow.DFA import DFA, Strategy
from blockflow.cfg import Block, Program
from blockflow.helpers import reverse_postorder
from blockflow.parser import StatementParser
from blockflow.reaching_defs import ReachingDefs, annotate_def_sites, run_analysis
from blockflow.samples import diamond, figure_9_13, straight_line, two_block_loop


def fs(*xs):
    return frozenset(xs)


FIG_IN = [fs(), fs(), fs(1, 2, 3, 5, 6, 7), fs(3, 4, 5, 6), fs(3, 4, 5, 6), fs(3, 5, 6, 7)]
FIG_OUT = [fs(), fs(1, 2, 3), fs(3, 4, 5, 6), fs(4, 5, 6), fs(3, 5, 6, 7), fs(3, 5, 6, 7)]


class TestReachingDefs(unittest.TestCase):
    def test_straight_line(self) -> None:
        dfa = run_analysis(straight_line())
        self.assertEqual(dfa.block_in(0), fs())
        self.assertEqual(dfa.block_out(0), fs(0, 1))
        self.assertEqual(dfa.block_in(1), fs(0, 1))
        self.assertEqual(dfa.block_out(1), fs(1, 2))

    def test_figure_9_13(self) -> None:
        ins, outs = run_analysis(figure_9_13()).run()
        self.assertEqual(list(ins), FIG_IN)
        self.assertEqual(list(outs), FIG_OUT)

    def test_def_sites(self) -> None:
        sites = annotate_def_sites(figure_9_13())
        self.assertEqual(sites["i"], fs(1, 4, 7))
        self.assertEqual(sites["a"], fs(3, 6))

    def test_block_gen_kill(self) -> None:
        p = figure_9_13()
        rd = ReachingDefs(p)
        self.assertEqual(rd.block_gen_kill(p.get_block(1)), (fs(1, 2, 3), fs(4, 5, 6, 7)))
        self.assertEqual(rd.block_gen_kill(p.get_block(5)), (fs(), fs()))

        p = straight_line()
        self.assertEqual(ReachingDefs(p).block_gen_kill(p.get_block(1)), (fs(2), fs(0)))

    def test_later_def_in_block_wins(self) -> None:
        p = Program([Block.parse(0, "x = 1\nx = 2\ny = x", StatementParser())])
        rd = ReachingDefs(p)
        gen, kill = rd.block_gen_kill(p.get_block(0))
        self.assertEqual(gen, fs(1, 2))
        self.assertEqual(run_analysis(p).block_out(0), fs(1, 2))

    def test_block_summary_matches_replay(self) -> None:
        for build in (figure_9_13, diamond, two_block_loop):
            p = build()
            rd = ReachingDefs(p)
            dfa = run_analysis(p)
            for bi, block in enumerate(p.blocks()):
                gen, kill = rd.block_gen_kill(block)
                self.assertEqual((dfa.block_in(bi) - kill) | gen, dfa.block_out(bi))

    def test_statement_facts(self) -> None:
        dfa = run_analysis(figure_9_13())
        self.assertEqual(dfa.stmt_in(1), fs())
        self.assertEqual(dfa.stmt_out(1), fs(1))
        self.assertEqual(dfa.stmt_in(2), fs(1))
        self.assertEqual(dfa.stmt_out(3), fs(1, 2, 3))
        self.assertEqual(dfa.stmt_in(4), FIG_IN[2])
        self.assertIsNone(dfa.stmt_in(99))
        self.assertIsNone(dfa.block_in(6))


class TestSolver(unittest.TestCase):
    def test_order_independence(self) -> None:
        rng = random.Random(6120)
        for build in (figure_9_13, diamond, two_block_loop, straight_line):
            p = build()
            expected = run_analysis(p).run()
            orders = [list(range(len(p))), list(reversed(range(len(p))))]
            for _ in range(5):
                order = list(range(len(p)))
                rng.shuffle(order)
                orders.append(order)
            for order in orders:
                self.assertEqual(run_analysis(p, Strategy.SWEEP, order=order).run(), expected)
                self.assertEqual(run_analysis(p, Strategy.WORKLIST, order=order).run(), expected)

    def test_acyclic_single_sweep(self) -> None:
        p = diamond()
        order = reverse_postorder(p)
        full = run_analysis(p, Strategy.SWEEP, order=order)
        self.assertEqual(full.sweeps, 2)
        one = run_analysis(p, Strategy.SWEEP, order=order, max_sweeps=1)
        self.assertFalse(one.converged)
        self.assertEqual(one.run(), full.run())

    def test_cyclic_needs_more_sweeps(self) -> None:
        p = figure_9_13()
        full = run_analysis(p, Strategy.SWEEP)
        self.assertTrue(full.converged)
        self.assertGreater(full.sweeps, 2)

        one = run_analysis(p, Strategy.SWEEP, max_sweeps=1)
        self.assertNotEqual(one.run(), full.run())
        for bi in range(len(p)):
            self.assertLessEqual(one.block_in(bi), full.block_in(bi))
            self.assertLessEqual(one.block_out(bi), full.block_out(bi))

    def test_bad_order(self) -> None:
        with self.assertRaises(ValueError):
            DFA(figure_9_13(), ReachingDefs(figure_9_13()), order=[0, 1])
        with self.assertRaises(ValueError):
            DFA(straight_line(), ReachingDefs(straight_line()), order=[0, 0])

    def test_empty_program(self) -> None:
        p = Program([])
        self.assertEqual(run_analysis(p).run(), ((), ()))
        dfa = run_analysis(p, Strategy.SWEEP)
        self.assertTrue(dfa.converged)
        self.assertEqual(dfa.sweeps, 1)

    def test_run_is_idempotent(self) -> None:
        dfa = run_analysis(figure_9_13())
        visits = dfa.visits
        self.assertEqual(dfa.run(), dfa.run())
        self.assertEqual(dfa.visits, visits)


if __name__ == "__main__":
    unittest.main()
