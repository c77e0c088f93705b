"""Booking core: admission control, persistence, pagination and the launch manifest client"""
