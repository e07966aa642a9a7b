from typing import Optional


class OS:
    def boot(self) -> None:
        print("OS is booting...")


class Laptop:
    def __init__(self):
        self.os: Optional[OS] = None

    def set_os(self, os: OS) -> None:
        self.os = os

    def build(self) -> None:
        print("Laptop is being built...")
        if self.os is None:
            raise RuntimeError("The laptop has no OS: call set_os before build")
        self.os.boot()
