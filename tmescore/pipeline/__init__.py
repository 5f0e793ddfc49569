"""TME report pipeline entrypoints."""


def run_tme_report(*args, **kwargs):
    from tmescore.pipeline.report import run_tme_report as _run_tme_report

    return _run_tme_report(*args, **kwargs)


__all__ = ["run_tme_report"]
