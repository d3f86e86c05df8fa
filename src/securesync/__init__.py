"""
secure-sync: encrypted, compressed directory sync to S3.

Streams a directory tree through tar, OpenSSL S/MIME and the AWS CLI
so nothing unencrypted ever touches the bucket.
"""

__version__ = "0.1.0"

BUCKET_SCHEME = "s3://"
