from .cloudfront import CdnDistribution, CdnDistributionResources, CloudfrontPriceClass
from .s3 import Bucket, S3BucketResources

__all__ = [
    "Bucket",
    "CdnDistribution",
    "CdnDistributionResources",
    "CloudfrontPriceClass",
    "S3BucketResources",
]
