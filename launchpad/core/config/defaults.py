"""
Built-in defaults — the statically known module set and host layout.

launchpad.yml may override any of these; without one, a run provisions
exactly this ordered list. Order is install order: later modules may
assume earlier ones are already materialized.
"""

from __future__ import annotations

MODULES: tuple[tuple[str, str], ...] = (
    (
        "com.novaframework.unity.core.common",
        "https://github.com/yoseasoft/com.novaframework.unity.core.common.git",
    ),
    (
        "com.novaframework.unity.installer",
        "https://github.com/AkasLiu/com.novaframework.unity.installer.git",
    ),
)

# Either one being loaded means provisioning already happened.
REQUIRED_MODULES: tuple[str, ...] = ("nova_installer", "nova_common")

LAUNCHER_NAME = "com.novaframework.unity.launcher"

MIRROR_ROOT = "NovaFrameworkData/framework_repo"
MANIFEST_PATH = "Packages/manifest.json"
BRANCH = "main"
GIT_TIMEOUT = 300
RESOLUTION_TIMEOUT = 600.0

HANDOFF_KEY = "nova.installer"
HANDOFF_TYPE = "nova_installer.auto_install:AutoInstallManager"
HANDOFF_METHOD = "start_auto_install"
HANDOFF_PREFIXES: tuple[str, ...] = ("nova", "installer")
