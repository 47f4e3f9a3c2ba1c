from .pass_factory import PassFactory, PASS_EXTENSION

__all__ = ["PassFactory", "PASS_EXTENSION"]
