from dataclasses import dataclass
from typing import final

import pulumi
import pulumi_aws

from edgeroute.component import Component
from edgeroute.context import context


@final
@dataclass(frozen=True)
class S3BucketResources:
    bucket: pulumi_aws.s3.Bucket
    public_access_block: pulumi_aws.s3.BucketPublicAccessBlock


@final
class Bucket(Component[S3BucketResources]):
    """Private bucket holding the static content of one origin.

    Public access is fully blocked; content is only reachable through a
    distribution's origin access control.
    """

    def __init__(self, name: str, versioning: bool = False):
        super().__init__(name)
        self.versioning = versioning
        self._resources = None

    def _create_resources(self) -> S3BucketResources:
        bucket = pulumi_aws.s3.Bucket(
            context().prefix(self.name),
            bucket=context().prefix(self.name),
            versioning={"enabled": self.versioning},
        )

        public_access_block = pulumi_aws.s3.BucketPublicAccessBlock(
            context().prefix(f"{self.name}-pab"),
            bucket=bucket.id,
            block_public_acls=True,
            block_public_policy=True,
            ignore_public_acls=True,
            restrict_public_buckets=True,
        )

        pulumi.export(f"s3bucket_{self.name}_arn", bucket.arn)
        pulumi.export(f"s3bucket_{self.name}_name", bucket.bucket)

        return S3BucketResources(bucket, public_access_block)

    @property
    def arn(self) -> pulumi.Output[str]:
        """Get the ARN of the S3 bucket."""
        return self.resources.bucket.arn

    @property
    def regional_domain_name(self) -> pulumi.Output[str]:
        return self.resources.bucket.bucket_regional_domain_name
