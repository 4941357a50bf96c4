from .step_10_refresh_index import RefreshIndexStep
from .step_20_install_packages import InstallPackagesStep
from .step_30_install_toolchain import InstallToolchainStep
from .step_40_report_versions import ReportVersionsStep

__all__ = [
    "RefreshIndexStep",
    "InstallPackagesStep",
    "InstallToolchainStep",
    "ReportVersionsStep",
]
