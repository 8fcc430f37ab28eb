"""SocialSphere core: social graph, engagement counters and the live feed."""
