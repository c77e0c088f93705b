"""Sample data generation"""
