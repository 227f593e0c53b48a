from chip8.exception import StackOverflow, StackUnderflow

# The number of return addresses the call stack can hold
STACK_DEPTH = 12


class CallStack(object):
    """
    The subroutine return stack. Return addresses live in a fixed-size list
    with a stack pointer that is checked on every push and pop, so a runaway
    program raises instead of writing past the end of the stack.
    """
    def __init__(self, depth=STACK_DEPTH):
        self.stack_depth = depth
        self.stack_entries = [0] * depth
        self.stack_pointer = 0

    def __len__(self):
        return self.stack_pointer

    def __iter__(self):
        return iter(self.stack_entries[:self.stack_pointer])

    def is_full(self):
        return self.stack_pointer == self.stack_depth

    def is_empty(self):
        return self.stack_pointer == 0

    def push(self, address, fault_address=None):
        """
        Push a return address.

        :param address: the return address to save
        :param fault_address: the address reported if the stack is full
        """
        if self.is_full():
            raise StackOverflow(address if fault_address is None else fault_address)
        self.stack_entries[self.stack_pointer] = address & 0xFFFF
        self.stack_pointer += 1

    def pop(self, fault_address=0):
        """
        Pop the most recent return address.

        :param fault_address: the address reported if the stack is empty
        :return: the return address
        """
        if self.is_empty():
            raise StackUnderflow(fault_address)
        self.stack_pointer -= 1
        address = self.stack_entries[self.stack_pointer]
        self.stack_entries[self.stack_pointer] = 0
        return address

    def clear(self):
        self.stack_entries = [0] * self.stack_depth
        self.stack_pointer = 0
