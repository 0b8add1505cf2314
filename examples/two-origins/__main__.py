from pathlib import Path

import pulumi

from edgeroute import load_config_file
from edgeroute.aws import Bucket, CdnDistribution
from edgeroute.context import init_context

init_context(pulumi.get_project(), pulumi.get_stack())

config = load_config_file(Path(__file__).parent / "distribution.json")

primary = Bucket("primary")
secondary = Bucket("secondary")

site = CdnDistribution("site", config, buckets={"primary": primary, "secondary": secondary})
_ = site.resources
