import os
from typing import Dict, List, Optional


# Environment variables that override the readout defaults.
# READOUT_DECODING_PATH is a colon separated list of directories.
ENV_MAPPING_NODES = "READOUT_MAPPING_NODES"
ENV_DECODING_PATH = "READOUT_DECODING_PATH"
ENV_SHOW_WARNINGS = "READOUT_SHOW_WARNINGS"


def _build_env_overrides() -> Dict[str, object]:
    overrides: Dict[str, object] = {}

    nodes = os.getenv(ENV_MAPPING_NODES, "").strip()
    if nodes:
        try:
            overrides['mapping_nodes'] = max(0, int(nodes))
        except ValueError:
            pass

    search_path = os.getenv(ENV_DECODING_PATH, "").strip()
    if search_path:
        overrides['decoding_path'] = [item for item in search_path.split(":") if item]

    warnings = os.getenv(ENV_SHOW_WARNINGS, "").strip().lower()
    if warnings:
        overrides['show_warnings'] = warnings in {"1", "true", "yes"}

    return overrides


class ReadoutConfig:
    """Configuration shared by every module of a readout build"""

    DEFAULTS = {
        'mapping_nodes': 0,         # 0 -> round(2*sqrt(pixels)) per module
        'tolerance': 1.e-6,         # mm, slack for pixel-in-module checks
        'show_warnings': False,
        'decoding': True,
        'decoding_path': None,
    }

    def __init__(self, mapping_nodes=None, tolerance=None, show_warnings=None,
                 decoding=None, decoding_path=None):
        """
        Parameters:
        -----------
        mapping_nodes : int, optional
            Default number of mapping grid nodes per axis (0 = automatic)
        tolerance : float, optional
            Default boundary slack used when validating pixel positions
        show_warnings : bool, optional
            Log pixels found outside their module boundaries
        decoding : bool, optional
            If False every module uses the identity daq -> readout relation
        decoding_path : list of str, optional
            Directories searched for relative decoding file names
        """
        values = dict(self.DEFAULTS)
        values.update(_build_env_overrides())

        explicit = {
            'mapping_nodes': mapping_nodes,
            'tolerance': tolerance,
            'show_warnings': show_warnings,
            'decoding': decoding,
            'decoding_path': decoding_path,
        }
        values.update({key: value for key, value in explicit.items() if value is not None})

        self.mapping_nodes = int(values['mapping_nodes'])
        self.tolerance = float(values['tolerance'])
        self.show_warnings = bool(values['show_warnings'])
        self.decoding = bool(values['decoding'])
        self.decoding_path: List[str] = list(values['decoding_path'] or [])

    def resolve_decoding_file(self, filename: str) -> Optional[str]:
        """
        Finds a decoding file, trying it as given and then inside every
        directory of the decoding search path.

        Returns:
        --------
        str or None : path of the existing file
        """
        if os.path.isabs(filename) or not self.decoding_path:
            return filename if os.path.exists(filename) else None
        if os.path.exists(filename):
            return filename
        for directory in self.decoding_path:
            candidate = os.path.join(directory, filename)
            if os.path.exists(candidate):
                return candidate
        return None

    def __repr__(self):
        return (f"ReadoutConfig(mapping_nodes={self.mapping_nodes}, tolerance={self.tolerance}, "
                f"show_warnings={self.show_warnings}, decoding={self.decoding}, "
                f"decoding_path={self.decoding_path})")
