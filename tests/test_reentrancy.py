from __future__ import annotations

import threading
import unittest

from interpose import Invocation, HandlerReentrancyError, ProxyError, create_proxy
from interpose.configuration import ProxySettings
from interpose.threading import CallDepth, ThreadLocal


class Calculator:
    def __init__(self):
        self.proxy = None

    def double(self, value: int) -> int:
        return value * 2

    def factorial(self, n: int) -> int:
        return 1 if n <= 1 else n * self.proxy.factorial(n - 1)

class TestReentrancy(unittest.TestCase):
    def test_unbounded_recursion(self):
        calls = []

        def handler(invocation: Invocation):
            calls.append(invocation.args[0])
            invocation.proxy.double(invocation.args[0])

        proxy = create_proxy(Calculator(), handler, settings=ProxySettings(reentrancy_limit=1))

        with self.assertRaises(HandlerReentrancyError) as context:
            proxy.double(5)

        self.assertIsInstance(context.exception, ProxyError)
        self.assertIsInstance(context.exception, RecursionError)
        self.assertEqual(calls, [5, 5])

    def test_bounded_recursion(self):
        def handler(invocation: Invocation):
            if invocation.args[0] < 10:
                invocation.return_value = invocation.proxy.double(invocation.args[0] * 10)

        proxy = create_proxy(Calculator(), handler, settings=ProxySettings(reentrancy_limit=1))

        self.assertEqual(proxy.double(5), 100)
        self.assertEqual(proxy.double(5), 100)

    def test_recursion_through_target(self):
        target = Calculator()
        proxy = create_proxy(target, lambda invocation: None, settings=ProxySettings(reentrancy_limit=3))
        target.proxy = proxy

        self.assertEqual(proxy.factorial(4), 24)

        with self.assertRaises(HandlerReentrancyError):
            proxy.factorial(5)

    def test_no_limit_without_handler(self):
        target = Calculator()
        proxy = create_proxy(target, settings=ProxySettings(reentrancy_limit=0))
        target.proxy = proxy

        self.assertEqual(proxy.factorial(6), 720)

    def test_other_operations(self):
        def handler(invocation: Invocation):
            if invocation.operation.name == "factorial":
                invocation.return_value = invocation.proxy.double(invocation.args[0])

        proxy = create_proxy(Calculator(), handler, settings=ProxySettings(reentrancy_limit=0))

        self.assertEqual(proxy.factorial(3), 6)

class TestConcurrency(unittest.TestCase):
    def test_threads(self):
        snapshots = []
        results = {}
        errors = []

        def handler(invocation: Invocation):
            invocation.args[0] = invocation.args[0] + 1

        proxy = create_proxy(Calculator(), handler, settings=ProxySettings())
        proxy.add_listener(snapshots.append)

        def work(index: int):
            try:
                results[index] = [proxy.double(index * 100 + i) for i in range(100)]
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=work, args=(index,)) for index in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(errors, [])
        self.assertEqual(len(snapshots), 800)

        for index in range(8):
            self.assertEqual(results[index], [(index * 100 + i + 1) * 2 for i in range(100)])

    def test_depth_per_thread(self):
        barrier = threading.Barrier(4)
        errors = []

        def handler(invocation: Invocation):
            barrier.wait(timeout=5)

        proxy = create_proxy(Calculator(), handler, settings=ProxySettings(reentrancy_limit=0))

        def work():
            try:
                proxy.double(1)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=work) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(errors, [])

class TestThreadLocal(unittest.TestCase):
    def test_get(self):
        local = ThreadLocal(list)
        seen = []

        local.get().append(1)

        thread = threading.Thread(target=lambda: seen.append(local.get()))
        thread.start()
        thread.join()

        self.assertEqual(local.get(), [1])
        self.assertEqual(seen, [[]])
        self.assertIsNone(ThreadLocal().get())

class TestCallDepth(unittest.TestCase):
    def test_enter(self):
        depth = CallDepth()

        with depth.enter("a") as outer:
            self.assertEqual(outer, 0)

            with depth.enter("a") as inner:
                self.assertEqual(inner, 1)
                self.assertEqual(depth.depth("a"), 2)
                self.assertEqual(depth.depth("b"), 0)

            self.assertEqual(depth.depth("a"), 1)

        self.assertEqual(depth.depth("a"), 0)

    def test_exception(self):
        depth = CallDepth()

        with self.assertRaises(KeyError):
            with depth.enter("a"):
                raise KeyError("a")

        self.assertEqual(depth.depth("a"), 0)

    def test_threads(self):
        depth = CallDepth()
        seen = []

        with depth.enter("a"):
            thread = threading.Thread(target=lambda: seen.append(depth.depth("a")))
            thread.start()
            thread.join()

        self.assertEqual(seen, [0])


if __name__ == '__main__':
    unittest.main()
