import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal, final

import pulumi
import pulumi_aws

from edgeroute.aws.s3 import Bucket
from edgeroute.component import Component
from edgeroute.context import context
from edgeroute.model import CacheBehavior, DistributionConfig
from edgeroute.validator import ConfigValidator

# https://www.pulumi.com/registry/packages/aws/api-docs/cloudfront/distribution/#inputs
CloudfrontPriceClass = Literal["PriceClass_100", "PriceClass_200", "PriceClass_All"]

# Order CloudFront lists methods in; it only accepts these exact groupings.
_METHOD_ORDER = ("GET", "HEAD", "OPTIONS", "PUT", "POST", "PATCH", "DELETE")


def _ordered_methods(methods: frozenset[str]) -> list[str]:
    return [method for method in _METHOD_ORDER if method in methods]


def _behavior_args(behavior: CacheBehavior) -> dict[str, Any]:
    forwarding = behavior.forwarding
    if forwarding.cookie_policy == "allowList":
        cookies = {"forward": "whitelist", "whitelisted_names": list(forwarding.cookie_names)}
    else:
        cookies = {"forward": forwarding.cookie_policy}

    args: dict[str, Any] = {
        "allowed_methods": _ordered_methods(behavior.allowed_methods),
        "cached_methods": _ordered_methods(behavior.cached_methods),
        "target_origin_id": behavior.target_origin_id,
        "compress": behavior.compress,
        "viewer_protocol_policy": behavior.viewer_protocol_policy,
        "forwarded_values": {
            "query_string": forwarding.query_string,
            "cookies": cookies,
        },
        "min_ttl": behavior.ttl.min,
        "default_ttl": behavior.ttl.default,
        "max_ttl": behavior.ttl.max,
    }
    if behavior.path_pattern is not None:
        args = {"path_pattern": behavior.path_pattern} | args
    return args


def distribution_args(
    config: DistributionConfig,
    origin_domains: Mapping[str, pulumi.Input[str]] | None = None,
    access_control_ids: Mapping[str, pulumi.Input[str]] | None = None,
) -> dict[str, Any]:
    """Render a routing configuration as Distribution arguments.

    Ordered behaviors are emitted in precedence order because CloudFront
    evaluates them by list position. ``origin_domains`` and
    ``access_control_ids`` replace an origin's declared domain and access
    control reference with provisioned values.
    """
    origin_domains = origin_domains or {}
    access_control_ids = access_control_ids or {}

    origins = []
    for origin in config.origins.values():
        origin_args: dict[str, Any] = {
            "origin_id": origin.id,
            "domain_name": origin_domains.get(origin.id, origin.domain),
        }
        if origin.access_control_ref is not None:
            origin_args["origin_access_control_id"] = access_control_ids.get(
                origin.access_control_ref, origin.access_control_ref
            )
        origins.append(origin_args)

    return {
        "origins": origins,
        "default_cache_behavior": _behavior_args(config.default_behavior),
        "ordered_cache_behaviors": [_behavior_args(b) for b in config.ordered_behaviors],
    }


def _bucket_read_policy(bucket_arn: str, distribution_arn: str) -> str:
    return json.dumps(
        {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Sid": "AllowCloudFrontServicePrincipal",
                    "Effect": "Allow",
                    "Principal": {"Service": "cloudfront.amazonaws.com"},
                    "Action": "s3:GetObject",
                    "Resource": f"{bucket_arn}/*",
                    "Condition": {"StringEquals": {"AWS:SourceArn": distribution_arn}},
                }
            ],
        }
    )


@final
@dataclass(frozen=True)
class CdnDistributionResources:
    distribution: pulumi_aws.cloudfront.Distribution
    origin_access_controls: dict[str, pulumi_aws.cloudfront.OriginAccessControl]
    bucket_policies: list[pulumi_aws.s3.BucketPolicy]


@final
class CdnDistribution(Component[CdnDistributionResources]):
    """CloudFront distribution provisioned from a validated routing configuration.

    Origins listed in ``buckets`` are served from that bucket's regional domain
    and get a bucket policy that lets only this distribution read objects.
    """

    def __init__(
        self,
        name: str,
        config: DistributionConfig,
        buckets: Mapping[str, Bucket] | None = None,
        price_class: CloudfrontPriceClass = "PriceClass_100",
        default_root_object: str | None = "index.html",
    ):
        super().__init__(name)
        self.config = ConfigValidator().revalidate(config)
        self.buckets = dict(buckets or {})
        self.price_class = price_class
        self.default_root_object = default_root_object
        self._resources = None

        unknown = sorted(set(self.buckets) - set(self.config.origins))
        if unknown:
            raise ValueError(
                f"Distribution '{name}' has buckets for undeclared origins: {', '.join(unknown)}"
            )

    def _create_resources(self) -> CdnDistributionResources:
        refs = sorted(
            {o.access_control_ref for o in self.config.origins.values() if o.access_control_ref}
        )
        origin_access_controls = {
            ref: pulumi_aws.cloudfront.OriginAccessControl(
                context().prefix(f"{self.name}-{ref}-oac"),
                description=f"Origin Access Control {ref} for {self.name}",
                origin_access_control_origin_type="s3",
                signing_behavior="always",
                signing_protocol="sigv4",
            )
            for ref in refs
        }

        args = distribution_args(
            self.config,
            origin_domains={
                origin_id: bucket.regional_domain_name
                for origin_id, bucket in self.buckets.items()
            },
            access_control_ids={ref: oac.id for ref, oac in origin_access_controls.items()},
        )

        distribution = pulumi_aws.cloudfront.Distribution(
            context().prefix(self.name),
            origins=args["origins"],
            enabled=True,
            is_ipv6_enabled=True,
            default_root_object=self.default_root_object,
            default_cache_behavior=args["default_cache_behavior"],
            ordered_cache_behaviors=args["ordered_cache_behaviors"] or None,
            price_class=self.price_class,
            restrictions={
                "geo_restriction": {
                    "restriction_type": "none",
                }
            },
            viewer_certificate={
                "cloudfront_default_certificate": True,
            },
        )

        bucket_policies = [
            pulumi_aws.s3.BucketPolicy(
                context().prefix(f"{self.name}-{origin_id}-bucket-policy"),
                bucket=bucket.resources.bucket.id,
                policy=pulumi.Output.all(bucket.arn, distribution.arn).apply(
                    lambda arns: _bucket_read_policy(arns[0], arns[1])
                ),
                opts=pulumi.ResourceOptions(depends_on=[distribution]),
            )
            for origin_id, bucket in self.buckets.items()
        ]

        pulumi.export(f"cdn_{self.name}_domain_name", distribution.domain_name)
        pulumi.export(f"cdn_{self.name}_distribution_id", distribution.id)
        pulumi.export(f"cdn_{self.name}_num_origins", len(self.config.origins))

        return CdnDistributionResources(distribution, origin_access_controls, bucket_policies)
