import logging

from pycall.logs import get_logger, setup_logging


class TestLogs:
    def test_loggers_live_under_pycall(self):
        assert get_logger("program").name == "pycall.program"
        assert get_logger("program").parent is logging.getLogger("pycall")

    def test_setup_logging_is_idempotent(self):
        root = logging.getLogger("pycall")
        before = list(root.handlers)
        try:
            setup_logging("debug")
            setup_logging("warning")
            added = [h for h in root.handlers if h not in before]
            assert len(added) == 1
            assert root.level == logging.WARNING
        finally:
            for h in root.handlers[:]:
                if h not in before:
                    root.removeHandler(h)
            root.setLevel(logging.NOTSET)

    def test_root_logger_untouched(self):
        root = logging.getLogger()
        before = list(root.handlers)
        pycall_root = logging.getLogger("pycall")
        pycall_before = list(pycall_root.handlers)
        try:
            setup_logging()
            assert root.handlers == before
        finally:
            for h in pycall_root.handlers[:]:
                if h not in pycall_before:
                    pycall_root.removeHandler(h)
            pycall_root.setLevel(logging.NOTSET)
