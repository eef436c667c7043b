"""HTTP service that receives Slack Events API webhooks."""
