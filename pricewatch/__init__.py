"""
Competitor price-intelligence scraping pipeline.
"""
