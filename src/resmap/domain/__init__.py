"""Storage-independent mapping logic: change detection, include trees and result mapping."""
