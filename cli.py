# cli.py

"""
Entry point for running SiteAudit from a source checkout.

Example:
    python cli.py --config configs/default.yaml run --suites accessibility,seo --json reports/report.json
"""
from site_audit.cli import main


if __name__ == '__main__':
    main()
